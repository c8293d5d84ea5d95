"""
Exceptions raised by the sequence engine.

Each exception carries one of the shared error codes so the HTTP layer can
render it without knowing about the engine.
"""

from src.utils.error_handling import STATUS_CODES


class SequenceEngineError(Exception):
    """Base class for sequence engine failures."""
    code = 'INTERNAL_ERROR'
    
    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details
    
    @property
    def status_code(self):
        return STATUS_CODES.get(self.code, 500)


class Unauthenticated(SequenceEngineError):
    code = 'UNAUTHORIZED'
    
    def __init__(self, message="Authentication required"):
        super().__init__(message)


class NotFound(SequenceEngineError):
    code = 'NOT_FOUND'
    
    def __init__(self, resource, resource_id=None):
        message = f"{resource} not found"
        if resource_id:
            message += f" with id: {resource_id}"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class DuplicateAssignment(SequenceEngineError):
    code = 'DUPLICATE_ASSIGNMENT'
    
    def __init__(self, sequence_id, prospect_id):
        super().__init__(
            "Prospect is already assigned to this sequence",
            {'sequence_id': sequence_id, 'prospect_id': prospect_id}
        )


class SequenceNotActive(SequenceEngineError):
    code = 'SEQUENCE_NOT_ACTIVE'
    
    def __init__(self, sequence_id, status):
        super().__init__(
            f"Sequence is {status}, only active sequences accept prospects",
            {'sequence_id': sequence_id, 'status': status}
        )


class SequenceLocked(SequenceEngineError):
    code = 'SEQUENCE_LOCKED'
    
    def __init__(self, sequence_id, active_assignments):
        super().__init__(
            "Steps cannot change while prospects are active in the sequence",
            {'sequence_id': sequence_id, 'active_assignments': active_assignments}
        )


class InvalidSequence(SequenceEngineError):
    code = 'INVALID_SEQUENCE'
    
    def __init__(self, message, errors=None):
        super().__init__(message, {'validation_errors': errors} if errors else None)
        self.errors = errors or []


class PersistenceError(SequenceEngineError):
    code = 'DATABASE_ERROR'
    
    def __init__(self, operation, original=None):
        super().__init__(f"Database error during {operation}")
        self.operation = operation
        self.original = original
