from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from src.models import db, Prospect, SequenceAssignment
from src.utils.error_handling import (
    handle_validation_error,
    handle_not_found_error,
    validate_required_fields,
    handle_exception
)
import logging

logger = logging.getLogger(__name__)

prospect_bp = Blueprint('prospect', __name__)

EDITABLE_FIELDS = (
    'company_name', 'contact_name', 'contact_email', 'contact_linkedin',
    'contact_job_title', 'status'
)


def _get_owned_prospect(prospect_id):
    return Prospect.query.filter_by(id=prospect_id, user_id=get_jwt_identity()).first()


@prospect_bp.route('/prospects', methods=['POST'])
@jwt_required()
def create_prospect():
    """Create a new prospect."""
    try:
        data = request.get_json(silent=True)
        
        validation_error = validate_required_fields(data, ['company_name'])
        if validation_error:
            return validation_error
        
        prospect = Prospect(user_id=get_jwt_identity())
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(prospect, field, data[field])
        
        db.session.add(prospect)
        db.session.commit()
        
        return jsonify({
            'message': 'Prospect created successfully',
            'prospect': prospect.to_dict()
        }), 201
        
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating prospect: {str(e)}")
        return handle_exception(e, "prospect creation")


@prospect_bp.route('/prospects', methods=['GET'])
@jwt_required()
def list_prospects():
    """List the current user's prospects."""
    try:
        limit = request.args.get('limit', default=100, type=int)
        offset = request.args.get('offset', default=0, type=int)
        status = request.args.get('status')
        
        query = Prospect.query.filter_by(user_id=get_jwt_identity())
        if status:
            query = query.filter_by(status=status)
        
        prospects = query.order_by(Prospect.created_at.desc()).limit(limit).offset(offset).all()
        
        return jsonify({
            'total': len(prospects),
            'limit': limit,
            'offset': offset,
            'prospects': [prospect.to_dict() for prospect in prospects]
        }), 200
        
    except Exception as e:
        logger.error(f"Error listing prospects: {str(e)}")
        return handle_exception(e, "prospect listing")


@prospect_bp.route('/prospects/<prospect_id>', methods=['GET'])
@jwt_required()
def get_prospect(prospect_id):
    """Get a prospect with the sequences it is assigned to."""
    try:
        prospect = _get_owned_prospect(prospect_id)
        if not prospect:
            return handle_not_found_error("Prospect", prospect_id)
        
        assignments = SequenceAssignment.query.filter_by(prospect_id=prospect.id).all()
        return jsonify({
            'prospect': prospect.to_dict(),
            'assignments': [a.to_dict() for a in assignments]
        }), 200
        
    except Exception as e:
        logger.error(f"Error getting prospect: {str(e)}")
        return handle_exception(e, "prospect lookup")


@prospect_bp.route('/prospects/<prospect_id>', methods=['PUT'])
@jwt_required()
def update_prospect(prospect_id):
    """Update a prospect."""
    try:
        prospect = _get_owned_prospect(prospect_id)
        if not prospect:
            return handle_not_found_error("Prospect", prospect_id)
        
        data = request.get_json(silent=True)
        if not data:
            return handle_validation_error("No data provided")
        if 'company_name' in data and not data['company_name']:
            return handle_validation_error("company_name cannot be empty")
        
        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(prospect, field, data[field])
        
        db.session.commit()
        
        return jsonify({
            'message': 'Prospect updated successfully',
            'prospect': prospect.to_dict()
        }), 200
        
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating prospect: {str(e)}")
        return handle_exception(e, "prospect update")
