"""
Pytest configuration and fixtures for Outreach Sequence API tests.

This module provides:
- Test database setup and teardown
- Flask test client and JWT headers
- Sequence engine instances
- Common test data
"""

import pytest

from src.main import create_app
from src.extensions import db
from src.models import Sequence, SequenceStep, Prospect, Task
from src.services.sequence_engine import SequenceEngine
from flask_jwt_extended import create_access_token

TEST_USER_ID = 'user-123'
OTHER_USER_ID = 'user-456'


@pytest.fixture
def app():
    """Create and configure a new app instance for each test."""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def db_session(app):
    """Database session for tests."""
    with app.app_context():
        yield db.session


@pytest.fixture
def user_id():
    return TEST_USER_ID


@pytest.fixture
def auth_headers(app, user_id):
    """Authorization headers carrying a JWT for the test user."""
    with app.app_context():
        token = create_access_token(identity=user_id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def engine(app):
    """Sequence engine with the default soft delete policy."""
    return SequenceEngine()


@pytest.fixture
def hard_engine(app):
    """Sequence engine that removes rows on delete."""
    return SequenceEngine(delete_policy='hard')


def make_sequence(db_session, user_id, name, delays=(0, 3, 7), channels=None, status='active', timezone='UTC'):
    """Persist a sequence with one step per delay."""
    channels = channels or ['email', 'linkedin', 'linkedin']
    sequence = Sequence(user_id=user_id, name=name, status=status, timezone=timezone)
    for number, delay in enumerate(delays, start=1):
        channel = channels[(number - 1) % len(channels)]
        sequence.steps.append(SequenceStep(
            step_number=number,
            channel=channel,
            linkedin_action=('connection' if number == 2 else 'message') if channel == 'linkedin' else None,
            message_template=f"Template for step {number}",
            delay_days=delay
        ))
    db_session.add(sequence)
    db_session.commit()
    return sequence


@pytest.fixture
def sample_sequence(db_session, user_id):
    """Three step sequence: email, LinkedIn connection, LinkedIn message."""
    return make_sequence(db_session, user_id, 'Q4 Outreach')


@pytest.fixture
def sample_prospect(db_session, user_id):
    """Create a sample prospect for testing."""
    prospect = Prospect(
        user_id=user_id,
        company_name='Acme Corp',
        contact_name='Jane Doe',
        contact_email='jane@acme.test',
        contact_linkedin='https://linkedin.com/in/jane-doe',
        contact_job_title='Head of Sales'
    )
    db_session.add(prospect)
    db_session.commit()
    return prospect


@pytest.fixture
def second_prospect(db_session, user_id):
    prospect = Prospect(
        user_id=user_id,
        company_name='Globex',
        contact_email='sam@globex.test',
        contact_job_title='CTO'
    )
    db_session.add(prospect)
    db_session.commit()
    return prospect


@pytest.fixture
def manual_task(db_session, user_id):
    """A task created outside any sequence."""
    task = Task(user_id=user_id, title='Call the accountant', source='other')
    db_session.add(task)
    db_session.commit()
    return task
