from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from datetime import timedelta

from src.utils.error_handling import (
    handle_unauthorized_error,
    validate_required_fields,
    handle_exception
)

auth_bp = Blueprint('auth', __name__)


def _token_response(identity):
    expires_in = current_app.config.get('JWT_ACCESS_TOKEN_EXPIRES', 86400)
    access_token = create_access_token(
        identity=identity,
        expires_delta=timedelta(seconds=expires_in)
    )
    return {
        'access_token': access_token,
        'token_type': 'Bearer',
        'expires_in': expires_in
    }


@auth_bp.route('/login', methods=['POST'])
def login():
    """Exchange the API key for a JWT bound to a user id."""
    try:
        data = request.get_json(silent=True)
        
        validation_error = validate_required_fields(data, ['api_key', 'user_id'])
        if validation_error:
            return validation_error
        
        if data['api_key'] != current_app.config['API_KEY']:
            return handle_unauthorized_error("Invalid API key")
        
        user_id = str(data['user_id']).strip()
        if not user_id:
            return handle_unauthorized_error("user_id cannot be empty")
        
        return jsonify(_token_response(user_id)), 200
            
    except Exception as e:
        return handle_exception(e, "login")


@auth_bp.route('/verify', methods=['GET'])
@jwt_required()
def verify_token():
    """Verify JWT token validity."""
    return jsonify({
        'message': 'Token is valid',
        'user': get_jwt_identity()
    }), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required()
def refresh_token():
    """Refresh JWT token."""
    return jsonify(_token_response(get_jwt_identity())), 200
