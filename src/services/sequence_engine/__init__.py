"""
Sequence engine services package.

This package contains organized sequence engine functionality:
- core.py: SequenceEngine, the assignment state machine
- definition.py: Step validation, normalization and the example sequence
- task_materializer.py: Turning steps into dated tasks
- delay_calculator.py: Cumulative delays and due dates
- timezone.py: Anchor dates in the sequence's timezone
- title_resolver.py: The legacy "sequence \"<name>\"" task title contract
- errors.py: Engine exceptions
"""

from .core import SequenceEngine, AssignmentResult, AdvanceResult
from .definition import EXAMPLE_SEQUENCE

# Export the main sequence engine class and example sequence
__all__ = ['SequenceEngine', 'AssignmentResult', 'AdvanceResult', 'EXAMPLE_SEQUENCE']
