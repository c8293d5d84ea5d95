"""
Unit tests for Utility Functions.

This module tests the error handling helpers and how engine exceptions map
onto the shared error codes.
"""

import json
import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.utils.error_handling import (
    create_error_response,
    handle_validation_error,
    handle_exception,
    handle_engine_error,
    validate_required_fields,
    validate_field_types,
    ERROR_CODES,
    STATUS_CODES
)
from src.services.sequence_engine.errors import (
    Unauthenticated,
    NotFound,
    DuplicateAssignment,
    SequenceNotActive,
    SequenceLocked,
    InvalidSequence,
    PersistenceError,
)


class TestErrorCodes:
    """Test error code constants."""

    def test_error_codes_structure(self):
        """Test that error codes are properly structured."""
        assert 'VALIDATION_ERROR' in ERROR_CODES
        assert 'NOT_FOUND' in ERROR_CODES
        assert 'UNAUTHORIZED' in ERROR_CODES
        assert 'DUPLICATE_ASSIGNMENT' in ERROR_CODES
        assert 'INTERNAL_ERROR' in ERROR_CODES

    def test_every_code_has_a_status(self):
        assert set(ERROR_CODES) == set(STATUS_CODES)


class TestErrorResponses:
    """Test the standard error envelope."""

    def test_envelope(self, app):
        response, status = create_error_response('NOT_FOUND', 'Sequence not found', {'id': 'x'})

        body = json.loads(response.data)
        assert status == 404
        assert body['error']['code'] == 'NOT_FOUND'
        assert body['error']['details'] == {'id': 'x'}
        assert 'timestamp' in body['error']

    def test_unknown_code_becomes_internal_error(self, app):
        response, status = create_error_response('MADE_UP', 'Oops')

        assert status == 500
        assert json.loads(response.data)['error']['code'] == 'INTERNAL_ERROR'

    def test_validation_error(self, app):
        _, status = handle_validation_error('Bad input')
        assert status == 400

    @pytest.mark.parametrize('error,status', [
        (ValueError('bad'), 400),
        (KeyError('name'), 400),
        (IntegrityError('insert', {}, Exception('unique')), 409),
        (SQLAlchemyError('down'), 500),
        (RuntimeError('boom'), 500),
    ])
    def test_handle_exception_categories(self, app, error, status):
        _, http_status = handle_exception(error, 'test operation')
        assert http_status == status


class TestEngineErrors:
    """Test engine exception codes."""

    @pytest.mark.parametrize('error,code,status', [
        (Unauthenticated(), 'UNAUTHORIZED', 401),
        (NotFound('Sequence', 'abc'), 'NOT_FOUND', 404),
        (DuplicateAssignment('s', 'p'), 'DUPLICATE_ASSIGNMENT', 409),
        (SequenceLocked('s', 2), 'SEQUENCE_LOCKED', 409),
        (SequenceNotActive('s', 'paused'), 'SEQUENCE_NOT_ACTIVE', 400),
        (InvalidSequence('Invalid', ['Step 1: bad']), 'INVALID_SEQUENCE', 400),
        (PersistenceError('task creation'), 'DATABASE_ERROR', 500),
    ])
    def test_codes_and_statuses(self, app, error, code, status):
        response, http_status = handle_engine_error(error)

        assert http_status == status
        assert json.loads(response.data)['error']['code'] == code

    def test_details_are_rendered(self, app):
        response, _ = handle_engine_error(DuplicateAssignment('seq-1', 'pro-1'))

        details = json.loads(response.data)['error']['details']
        assert details == {'sequence_id': 'seq-1', 'prospect_id': 'pro-1'}

    def test_not_found_message(self):
        assert str(NotFound('Task', 't-1')) == 'Task not found with id: t-1'


class TestRequestValidation:
    """Test request payload validators."""

    def test_required_fields_present(self, app):
        assert validate_required_fields({'name': 'x'}, ['name']) is None

    def test_required_fields_missing(self, app):
        response, status = validate_required_fields({'name': None}, ['name', 'steps'])

        assert status == 400
        assert json.loads(response.data)['error']['details']['missing_fields'] == ['name', 'steps']

    def test_required_fields_without_body(self, app):
        _, status = validate_required_fields(None, ['name'])
        assert status == 400

    def test_field_types(self, app):
        assert validate_field_types({'max_steps': 3}, {'max_steps': int}) is None

        response, status = validate_field_types({'max_steps': '3'}, {'max_steps': int})
        assert status == 400
        assert json.loads(response.data)['error']['details']['type_errors'][0]['field'] == 'max_steps'
