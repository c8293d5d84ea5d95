"""
Sequence step editing.

Steps are locked while any prospect is actively assigned to the sequence,
so tasks that were already scheduled always match the steps they came from.
"""

import logging
from flask import request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from src.extensions import db
from src.services.sequence_engine import SequenceEngine
from src.services.sequence_engine.errors import SequenceEngineError
from src.utils.error_handling import (
    handle_validation_error,
    handle_engine_error,
    handle_exception
)

logger = logging.getLogger(__name__)

# Import the blueprint from the package
from . import sequence_bp


@sequence_bp.route('/sequences/<sequence_id>/steps', methods=['GET'])
@jwt_required()
def get_sequence_steps(sequence_id):
    """Get the ordered steps of a sequence."""
    try:
        sequence = SequenceEngine.from_config().get_sequence(sequence_id, get_jwt_identity())
        return jsonify({
            'sequence_id': sequence_id,
            'steps': [step.to_dict() for step in sequence.steps],
            'total_steps': sequence.total_steps,
            'locked': bool(sequence.active_assignments)
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error getting sequence steps: {str(e)}")
        return handle_exception(e, "step lookup")


@sequence_bp.route('/sequences/<sequence_id>/steps', methods=['PUT'])
@jwt_required()
def replace_sequence_steps(sequence_id):
    """Replace every step of a sequence."""
    try:
        data = request.get_json(silent=True)
        if not data or 'steps' not in data:
            return handle_validation_error("Sequence steps are required")
        
        sequence = SequenceEngine.from_config().replace_steps(sequence_id, get_jwt_identity(), data['steps'])
        return jsonify({
            'message': 'Sequence steps updated successfully',
            'sequence': sequence.to_dict(include_steps=True)
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error replacing sequence steps: {str(e)}")
        return handle_exception(e, "step update")


@sequence_bp.route('/sequences/<sequence_id>/steps', methods=['POST'])
@jwt_required()
def add_sequence_step(sequence_id):
    """Append a step to a sequence."""
    try:
        data = request.get_json(silent=True)
        if not data:
            return handle_validation_error("Step definition is required")
        
        step = SequenceEngine.from_config().add_step(sequence_id, get_jwt_identity(), data)
        return jsonify({
            'message': 'Step added successfully',
            'step': step.to_dict()
        }), 201
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error adding sequence step: {str(e)}")
        return handle_exception(e, "step creation")


@sequence_bp.route('/sequences/<sequence_id>/steps/<int:step_number>', methods=['PUT'])
@jwt_required()
def update_sequence_step(sequence_id, step_number):
    """Update one step of a sequence."""
    try:
        data = request.get_json(silent=True)
        if not data:
            return handle_validation_error("No data provided")
        
        step = SequenceEngine.from_config().update_step(sequence_id, step_number, get_jwt_identity(), data)
        return jsonify({
            'message': 'Step updated successfully',
            'step': step.to_dict()
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating sequence step: {str(e)}")
        return handle_exception(e, "step update")


@sequence_bp.route('/sequences/<sequence_id>/steps/<int:step_number>', methods=['DELETE'])
@jwt_required()
def delete_sequence_step(sequence_id, step_number):
    """Delete one step; later steps move up to keep numbering dense."""
    try:
        sequence = SequenceEngine.from_config().delete_step(sequence_id, step_number, get_jwt_identity())
        return jsonify({
            'message': 'Step deleted successfully',
            'sequence': sequence.to_dict(include_steps=True)
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting sequence step: {str(e)}")
        return handle_exception(e, "step deletion")
