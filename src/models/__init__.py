# Import db from extensions to use the same instance
from src.extensions import db

# Import all models to ensure they are registered with SQLAlchemy
from src.models.sequence import Sequence
from src.models.sequence_step import SequenceStep
from src.models.prospect import Prospect
from src.models.assignment import SequenceAssignment
from src.models.task import Task
from src.models.event import Event

__all__ = ['db', 'Sequence', 'SequenceStep', 'Prospect', 'SequenceAssignment', 'Task', 'Event']
