"""
Basic CRUD operations for sequences.

This module contains functionality for:
- Creating sequences (optionally with their steps)
- Listing and getting sequences
- Updating sequence settings
- Deleting sequences under the configured delete policy
"""

import logging
from flask import request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity

from src.extensions import db
from src.models import Sequence, SequenceStep
from src.models.sequence import SEQUENCE_STATUSES
from src.services.sequence_engine import SequenceEngine
from src.services.sequence_engine.definition import (
    validate_sequence_definition,
    normalize_step,
    ordered_step_payloads
)
from src.services.sequence_engine.errors import SequenceEngineError
from src.services.sequence_engine.timezone import is_valid_timezone
from src.utils.error_handling import (
    handle_validation_error,
    handle_business_logic_error,
    handle_engine_error,
    validate_required_fields,
    handle_exception
)

logger = logging.getLogger(__name__)

# Import the blueprint from the package
from . import sequence_bp


def _validate_settings(data, current_total_steps=0):
    """Shared checks for the editable sequence settings; returns an error response or None."""
    if 'status' in data and data['status'] not in SEQUENCE_STATUSES:
        return handle_validation_error(
            f"Invalid status '{data['status']}'",
            {'allowed': list(SEQUENCE_STATUSES)}
        )
    if 'timezone' in data and not is_valid_timezone(data['timezone']):
        return handle_validation_error(f"Unknown timezone '{data['timezone']}'")
    if 'max_steps' in data:
        max_steps = data['max_steps']
        if not isinstance(max_steps, int) or isinstance(max_steps, bool) or max_steps < 1:
            return handle_validation_error("max_steps must be a positive integer")
        if max_steps < current_total_steps:
            return handle_validation_error("max_steps cannot be lower than the current number of steps")
    return None


@sequence_bp.route('/sequences', methods=['POST'])
@jwt_required()
def create_sequence():
    """Create a new sequence for the current user."""
    try:
        user_id = get_jwt_identity()
        data = request.get_json(silent=True)
        
        validation_error = validate_required_fields(data, ['name'])
        if validation_error:
            return validation_error
        
        steps = data.get('steps', [])
        settings_error = _validate_settings(data, len(steps) if isinstance(steps, list) else 0)
        if settings_error:
            return settings_error
        
        validation_result = validate_sequence_definition(steps)
        if not validation_result['valid']:
            return handle_business_logic_error(
                'INVALID_SEQUENCE',
                'Invalid sequence definition',
                {'validation_errors': validation_result['errors']}
            )
        
        max_steps = data.get('max_steps', current_app.config['DEFAULT_SEQUENCE_MAX_STEPS'])
        if len(steps) > max_steps:
            return handle_business_logic_error('INVALID_SEQUENCE', f"Sequence allows at most {max_steps} steps")
        
        sequence = Sequence(
            user_id=user_id,
            name=data['name'],
            description=data.get('description'),
            status=data.get('status', 'active'),
            max_steps=max_steps,
            timezone=data.get('timezone', current_app.config['DEFAULT_TIMEZONE'])
        )
        for number, payload in enumerate(ordered_step_payloads(steps), start=1):
            sequence.steps.append(SequenceStep(**normalize_step(payload, number)))
        
        db.session.add(sequence)
        db.session.commit()
        
        logger.info(f"Created sequence {sequence.id} for user {user_id}")
        return jsonify({
            'message': 'Sequence created successfully',
            'sequence': sequence.to_dict(include_steps=True),
            'warnings': validation_result['warnings']
        }), 201
        
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating sequence: {str(e)}")
        return handle_exception(e, "sequence creation")


@sequence_bp.route('/sequences', methods=['GET'])
@jwt_required()
def list_sequences():
    """List the current user's sequences, newest first."""
    try:
        user_id = get_jwt_identity()
        status = request.args.get('status')
        include_deleted = request.args.get('include_deleted', 'false').lower() == 'true'
        
        query = Sequence.query.filter_by(user_id=user_id)
        if not include_deleted:
            query = query.filter_by(is_deleted=False)
        if status:
            query = query.filter_by(status=status)
        
        sequences = query.order_by(Sequence.created_at.desc()).all()
        return jsonify({
            'sequences': [sequence.to_dict() for sequence in sequences],
            'total': len(sequences)
        }), 200
        
    except Exception as e:
        logger.error(f"Error listing sequences: {str(e)}")
        return handle_exception(e, "sequence listing")


@sequence_bp.route('/sequences/<sequence_id>', methods=['GET'])
@jwt_required()
def get_sequence(sequence_id):
    """Get a sequence with its steps."""
    try:
        sequence = SequenceEngine.from_config().get_sequence(sequence_id, get_jwt_identity())
        return jsonify({'sequence': sequence.to_dict(include_steps=True)}), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        logger.error(f"Error getting sequence: {str(e)}")
        return handle_exception(e, "sequence lookup")


@sequence_bp.route('/sequences/<sequence_id>', methods=['PUT'])
@jwt_required()
def update_sequence(sequence_id):
    """Update a sequence's settings (not its steps)."""
    try:
        sequence = SequenceEngine.from_config().get_sequence(sequence_id, get_jwt_identity())
        
        data = request.get_json(silent=True)
        if not data:
            return handle_validation_error("No data provided")
        
        settings_error = _validate_settings(data, sequence.total_steps)
        if settings_error:
            return settings_error
        
        for field in ('name', 'description', 'status', 'timezone', 'max_steps'):
            if field in data:
                setattr(sequence, field, data[field])
        
        db.session.commit()
        
        return jsonify({
            'message': 'Sequence updated successfully',
            'sequence': sequence.to_dict(include_steps=True)
        }), 200
        
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating sequence: {str(e)}")
        return handle_exception(e, "sequence update")


@sequence_bp.route('/sequences/<sequence_id>', methods=['DELETE'])
@jwt_required()
def delete_sequence(sequence_id):
    """Delete a sequence using the configured delete policy."""
    try:
        summary = SequenceEngine.from_config().delete_sequence(sequence_id, get_jwt_identity())
        return jsonify({
            'message': 'Sequence deleted successfully',
            **summary
        }), 200
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error deleting sequence: {str(e)}")
        return handle_exception(e, "sequence deletion")
