"""
Unit tests for task materialization, delay calculation and timezones.
"""

from datetime import date, datetime

import pytz

from src.models import SequenceStep, Prospect, SequenceAssignment, Sequence
from src.services.sequence_engine.delay_calculator import (
    cumulative_delay_days,
    calculate_due_date,
    build_schedule
)
from src.services.sequence_engine.task_materializer import (
    action_for_step,
    build_task_title,
    materialize_task,
    ACTION_SEND_EMAIL,
    ACTION_LINKEDIN_CONNECTION,
    ACTION_LINKEDIN_MESSAGE
)
from src.services.sequence_engine.timezone import (
    is_valid_timezone,
    get_sequence_timezone,
    to_local_date,
    anchor_date_for
)


def steps_with_delays(*delays):
    return [SequenceStep(step_number=n, channel='email', delay_days=d) for n, d in enumerate(delays, start=1)]


class TestActions:
    """Test mapping of steps to task actions."""

    def test_email_step(self):
        assert action_for_step(SequenceStep(channel='email')) == ACTION_SEND_EMAIL

    def test_linkedin_connection_step(self):
        step = SequenceStep(channel='linkedin', linkedin_action='connection')
        assert action_for_step(step) == ACTION_LINKEDIN_CONNECTION

    def test_linkedin_message_step(self):
        assert action_for_step(SequenceStep(channel='linkedin', linkedin_action='message')) == ACTION_LINKEDIN_MESSAGE
        assert action_for_step(SequenceStep(channel='linkedin')) == ACTION_LINKEDIN_MESSAGE


class TestTaskTitles:
    """Test task title formatting."""

    def setup_method(self):
        self.prospect = Prospect(
            company_name='Acme Corp',
            contact_job_title='Head of Sales',
            contact_email='jane@acme.test',
            contact_linkedin='https://linkedin.com/in/jane-doe'
        )

    def test_email_title_uses_email_contact(self):
        step = SequenceStep(step_number=1, channel='email')

        assert build_task_title(step, self.prospect) == \
            'Send email to Acme Corp - Head of Sales (jane@acme.test) - Step 1'

    def test_linkedin_title_uses_profile(self):
        step = SequenceStep(step_number=2, channel='linkedin', linkedin_action='connection')

        assert build_task_title(step, self.prospect) == (
            'Send LinkedIn connection request to Acme Corp - Head of Sales '
            '(https://linkedin.com/in/jane-doe) - Step 2'
        )

    def test_missing_contact_drops_parentheses(self):
        self.prospect.contact_linkedin = None
        step = SequenceStep(step_number=3, channel='linkedin', linkedin_action='message')

        assert build_task_title(step, self.prospect) == \
            'Send LinkedIn message to Acme Corp - Head of Sales - Step 3'


class TestMaterializeTask:
    """Test idempotent task creation."""

    def test_existing_task_is_returned(self, db_session, user_id, sample_sequence, sample_prospect):
        assignment = SequenceAssignment(
            sequence_id=sample_sequence.id, prospect_id=sample_prospect.id,
            user_id=user_id, created_at=datetime(2024, 3, 1, 12, 0)
        )
        db_session.add(assignment)
        db_session.commit()
        steps = list(sample_sequence.steps)

        task, created = materialize_task(assignment, steps[2], sample_prospect, steps, date(2024, 3, 1))
        again, created_again = materialize_task(assignment, steps[2], sample_prospect, steps, date(2024, 3, 1))

        assert created is True
        assert created_again is False
        assert again.id == task.id
        assert task.due_date == date(2024, 3, 11)
        assert task.priority == 'medium'


class TestDelayCalculator:
    """Test due date arithmetic."""

    def test_cumulative_delays(self):
        steps = steps_with_delays(0, 3, 7)

        assert [cumulative_delay_days(steps, n) for n in (1, 2, 3)] == [0, 3, 10]

    def test_due_dates_from_anchor(self):
        steps = steps_with_delays(0, 3, 7)
        anchor = date(2024, 2, 27)

        assert calculate_due_date(anchor, steps, 3) == date(2024, 3, 8)

    def test_first_step_delay_counts_from_anchor(self):
        steps = steps_with_delays(2, 0)

        assert calculate_due_date(date(2024, 1, 1), steps, 1) == date(2024, 1, 3)
        assert calculate_due_date(date(2024, 1, 1), steps, 2) == date(2024, 1, 3)

    def test_schedule_is_in_step_order(self):
        steps = list(reversed(steps_with_delays(1, 1)))

        schedule = build_schedule(date(2024, 1, 1), steps)

        assert [entry['step_number'] for entry in schedule] == [1, 2]
        assert [entry['due_date'] for entry in schedule] == ['2024-01-02', '2024-01-03']


class TestTimezones:
    """Test anchor date conversion."""

    def test_valid_timezones(self):
        assert is_valid_timezone('Europe/London')
        assert not is_valid_timezone('Mars/Olympus_Mons')

    def test_unknown_timezone_falls_back_to_utc(self):
        sequence = Sequence(id='seq-1', timezone='Mars/Olympus_Mons')
        assert get_sequence_timezone(sequence) == pytz.UTC

    def test_local_date_crosses_midnight(self):
        late_utc = datetime(2024, 1, 1, 2, 30)

        assert to_local_date(late_utc, pytz.timezone('America/New_York')) == date(2023, 12, 31)
        assert to_local_date(late_utc, pytz.UTC) == date(2024, 1, 1)

    def test_anchor_date_uses_sequence_timezone(self):
        sequence = Sequence(timezone='Asia/Tokyo')
        assignment = SequenceAssignment(created_at=datetime(2024, 1, 1, 20, 0))

        assert anchor_date_for(assignment, sequence) == date(2024, 1, 2)
