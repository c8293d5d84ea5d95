"""
Prospect assignment.

This module contains functionality for:
- Assigning a prospect to a sequence
- Listing a sequence's assignments
- Inspecting one assignment with its tasks
- Re-creating tasks missing after a partial failure
"""

import logging
from flask import request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from src.models import SequenceAssignment, Task
from src.services.sequence_engine import SequenceEngine
from src.services.sequence_engine.errors import SequenceEngineError
from src.utils.error_handling import (
    handle_engine_error,
    validate_required_fields,
    handle_exception
)

logger = logging.getLogger(__name__)

# Import the blueprint from the package
from . import sequence_bp


@sequence_bp.route('/sequences/<sequence_id>/assignments', methods=['POST'])
@jwt_required()
def assign_prospect(sequence_id):
    """Assign a prospect to a sequence and schedule all of its tasks."""
    try:
        data = request.get_json(silent=True)
        validation_error = validate_required_fields(data, ['prospect_id'])
        if validation_error:
            return validation_error
        
        result = SequenceEngine.from_config().assign_prospect(sequence_id, data['prospect_id'], get_jwt_identity())
        
        message = 'Prospect assigned to sequence successfully'
        if not result.complete:
            message = 'Prospect assigned to sequence, but some tasks could not be created'
        
        return jsonify({
            'message': message,
            **result.to_dict()
        }), 201
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error assigning prospect to sequence: {str(e)}")
        return handle_exception(e, "prospect assignment")


@sequence_bp.route('/sequences/<sequence_id>/assignments', methods=['GET'])
@jwt_required()
def list_sequence_assignments(sequence_id):
    """List assignments of a sequence, optionally filtered by status."""
    try:
        user_id = get_jwt_identity()
        SequenceEngine.from_config().get_sequence(sequence_id, user_id, include_deleted=True)
        
        query = SequenceAssignment.query.filter_by(sequence_id=sequence_id, user_id=user_id)
        status = request.args.get('status')
        if status:
            query = query.filter_by(status=status)
        
        assignments = query.order_by(SequenceAssignment.created_at.desc()).all()
        return jsonify({
            'sequence_id': sequence_id,
            'assignments': [
                {**a.to_dict(), 'prospect': a.prospect.to_dict() if a.prospect else None}
                for a in assignments
            ],
            'total': len(assignments)
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error listing assignments: {str(e)}")
        return handle_exception(e, "assignment listing")


@sequence_bp.route('/assignments/<assignment_id>', methods=['GET'])
@jwt_required()
def get_assignment(assignment_id):
    """Get an assignment with its tasks in step order."""
    try:
        assignment = SequenceEngine.from_config().get_assignment(assignment_id, get_jwt_identity())
        tasks = Task.query.filter_by(assignment_id=assignment.id).order_by(Task.step_number).all()
        return jsonify({
            'assignment': assignment.to_dict(),
            'tasks': [task.to_dict() for task in tasks]
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error getting assignment: {str(e)}")
        return handle_exception(e, "assignment lookup")


@sequence_bp.route('/assignments/<assignment_id>/sync-tasks', methods=['POST'])
@jwt_required()
def sync_assignment_tasks(assignment_id):
    """Create any tasks an active assignment is missing."""
    try:
        result = SequenceEngine.from_config().materialize_missing_tasks(assignment_id, get_jwt_identity())
        return jsonify({
            'message': f"Created {len(result.created_steps)} missing task(s)",
            **result.to_dict()
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error syncing assignment tasks: {str(e)}")
        return handle_exception(e, "task sync")
