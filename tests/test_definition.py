"""
Unit tests for sequence definition validation.
"""

import pytest

from src.services.sequence_engine import EXAMPLE_SEQUENCE
from src.services.sequence_engine.definition import (
    validate_step,
    validate_sequence_definition,
    normalize_step,
    ordered_step_payloads
)


class TestValidateSequenceDefinition:
    """Test validation of step lists."""

    def test_example_sequence_is_valid(self):
        result = validate_sequence_definition(EXAMPLE_SEQUENCE)

        assert result['valid'] is True
        assert result['errors'] == []

    def test_not_a_list(self):
        result = validate_sequence_definition({'channel': 'email'})

        assert result['valid'] is False

    def test_empty_sequence_warns(self):
        result = validate_sequence_definition([])

        assert result['valid'] is True
        assert len(result['warnings']) == 1

    @pytest.mark.parametrize('step,fragment', [
        ({'channel': 'sms'}, 'Invalid channel'),
        ({'channel': 'email', 'linkedin_action': 'connection'}, 'only allowed on linkedin'),
        ({'channel': 'linkedin', 'linkedin_action': 'endorse'}, 'Invalid linkedin_action'),
        ({'channel': 'email', 'delay_days': -2}, 'non-negative'),
        ({'channel': 'email', 'delay_days': 1.5}, 'non-negative'),
        ({'channel': 'email', 'delay_days': True}, 'non-negative'),
        ({'channel': 'email', 'preferred_time': '25:00'}, 'HH:MM'),
    ])
    def test_invalid_steps(self, step, fragment):
        result = validate_sequence_definition([step])

        assert result['valid'] is False
        assert fragment in result['errors'][0]

    def test_missing_template_is_a_warning(self):
        result = validate_step({'channel': 'email', 'delay_days': 0}, 1)

        assert result['errors'] == []
        assert result['warnings'] == ['Step 1: No message template']

    def test_numbering_must_be_dense(self):
        result = validate_sequence_definition([
            {'step_number': 1, 'channel': 'email'},
            {'step_number': 3, 'channel': 'email'},
        ])

        assert result['valid'] is False

    def test_numbering_must_be_integers(self):
        result = validate_sequence_definition([
            {'step_number': 'a', 'channel': 'email'},
            {'step_number': 2, 'channel': 'email'},
        ])

        assert result['valid'] is False
        assert 'step_number values must be integers' in result['errors']

    def test_numbering_all_or_nothing(self):
        result = validate_sequence_definition([
            {'step_number': 1, 'channel': 'email'},
            {'channel': 'email'},
        ])

        assert result['valid'] is False


class TestNormalizeStep:
    """Test conversion of payloads into column values."""

    def test_linkedin_defaults_to_message(self):
        assert normalize_step({'channel': 'linkedin'}, 2)['linkedin_action'] == 'message'

    def test_email_has_no_linkedin_action(self):
        values = normalize_step({'channel': 'email', 'delay_days': None}, 1)

        assert values['linkedin_action'] is None
        assert values['delay_days'] == 0

    def test_explicit_numbers_set_order(self):
        payloads = [{'step_number': 2, 'channel': 'email'}, {'step_number': 1, 'channel': 'linkedin'}]

        assert [p['channel'] for p in ordered_step_payloads(payloads)] == ['linkedin', 'email']
