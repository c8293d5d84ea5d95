"""
Global Error Handlers for Flask Application

This module provides global error handlers that catch unhandled exceptions
and return standardized error responses.
"""

import logging
from werkzeug.exceptions import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from src.extensions import db
from src.services.sequence_engine.errors import SequenceEngineError
from .error_handling import (
    handle_exception,
    handle_not_found_error,
    create_error_response
)

logger = logging.getLogger(__name__)

def register_error_handlers(app):
    """Register global error handlers for the Flask application."""
    
    @app.errorhandler(SequenceEngineError)
    def sequence_engine_error(error):
        """Render engine failures with their own error code."""
        db.session.rollback()
        if error.status_code >= 500:
            logger.error(f"Sequence engine failure: {error}")
        else:
            logger.info(f"Sequence engine rejected request: {error}")
        return create_error_response(error.code, error.message, error.details, status_code=error.status_code)
    
    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 Not Found errors."""
        return handle_not_found_error("Resource")
    
    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 Method Not Allowed errors."""
        return create_error_response(
            'BAD_REQUEST',
            f"Method {error.valid_methods[0] if error.valid_methods else 'GET'} not allowed for this endpoint",
            status_code=405
        )
    
    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        """Handle SQLAlchemy database errors."""
        db.session.rollback()
        return handle_exception(error, "database operation")
    
    @app.errorhandler(HTTPException)
    def http_error(error):
        """Handle HTTP exceptions."""
        return create_error_response(
            'BAD_REQUEST',
            error.description or "HTTP error occurred",
            status_code=error.code
        )
    
    @app.errorhandler(Exception)
    def generic_error(error):
        """Handle all other unhandled exceptions."""
        logger.exception("Unhandled error during request processing")
        return handle_exception(error, "request processing")
