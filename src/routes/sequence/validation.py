"""
Sequence validation and previews.

This module contains functionality for:
- Sequence definition validation
- Schedule previews
- The example sequence
"""

import logging
from datetime import date
from flask import request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from src.services.sequence_engine import SequenceEngine, EXAMPLE_SEQUENCE
from src.services.sequence_engine.errors import SequenceEngineError
from src.services.sequence_engine.task_materializer import action_for_step
from src.utils.error_handling import (
    handle_validation_error,
    handle_engine_error,
    handle_exception
)

logger = logging.getLogger(__name__)

# Import the blueprint from the package
from . import sequence_bp


@sequence_bp.route('/sequences/validate', methods=['POST'])
@jwt_required()
def validate_sequence():
    """Validate a sequence definition."""
    try:
        data = request.get_json(silent=True)
        if not data or 'steps' not in data:
            return handle_validation_error("Sequence steps are required")
        
        validation_result = SequenceEngine.from_config().validate_sequence_definition(data['steps'])
        
        return jsonify({
            'valid': validation_result['valid'],
            'errors': validation_result.get('errors', []),
            'warnings': validation_result.get('warnings', [])
        }), 200
        
    except Exception as e:
        logger.error(f"Error validating sequence: {str(e)}")
        return handle_exception(e, "sequence validation")


@sequence_bp.route('/sequences/<sequence_id>/schedule-preview', methods=['GET'])
@jwt_required()
def preview_sequence_schedule(sequence_id):
    """Show the due date each step would get for a prospect assigned on a given day."""
    try:
        engine = SequenceEngine.from_config()
        sequence = engine.get_sequence(sequence_id, get_jwt_identity())
        
        anchor = None
        start_date = request.args.get('start_date')
        if start_date:
            try:
                anchor = date.fromisoformat(start_date)
            except ValueError:
                return handle_validation_error("start_date must use YYYY-MM-DD")
        
        schedule = engine.preview_schedule(sequence, anchor)
        actions = {step.step_number: action_for_step(step) for step in sequence.steps}
        for entry in schedule:
            entry['action'] = actions[entry['step_number']]
        
        return jsonify({
            'sequence_id': sequence_id,
            'sequence_name': sequence.name,
            'timezone': sequence.timezone,
            'total_steps': sequence.total_steps,
            'schedule': schedule,
            'total_delay_days': schedule[-1]['cumulative_delay_days'] if schedule else 0
        }), 200
        
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error previewing sequence schedule: {str(e)}")
        return handle_exception(e, "schedule preview")


@sequence_bp.route('/sequences/example', methods=['GET'])
@jwt_required()
def get_example_sequence():
    """Get an example sequence definition."""
    return jsonify({
        'example_sequence': EXAMPLE_SEQUENCE,
        'description': 'Example 4-step email and LinkedIn outreach sequence'
    }), 200
