"""
Sequence routes package.

This package contains organized sequence functionality:
- crud.py: Creating, listing, updating and deleting sequences
- steps.py: Editing the steps of a sequence
- assignments.py: Assigning prospects and re-syncing their tasks
- validation.py: Definition validation, schedule previews and the example
"""

from flask import Blueprint

# Create the main sequence blueprint
sequence_bp = Blueprint('sequence', __name__)

# Import all route modules to register them
from . import crud
from . import steps
from . import assignments
from . import validation

# Export the blueprint
__all__ = ['sequence_bp']
