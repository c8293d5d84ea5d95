"""
Task materialization.

Turns one sequence step for one assignment into a dated task. Writes are
idempotent per (assignment, step): an existing task for the pair is returned
instead of inserting a second one.
"""

import logging
from datetime import date
from typing import Iterable, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.extensions import db
from src.models import Task
from .delay_calculator import calculate_due_date
from .errors import PersistenceError

logger = logging.getLogger(__name__)

ACTION_SEND_EMAIL = 'Send email'
ACTION_LINKEDIN_CONNECTION = 'Send LinkedIn connection request'
ACTION_LINKEDIN_MESSAGE = 'Send LinkedIn message'

TASK_SOURCE = 'outreach'
TASK_PRIORITY = 'medium'


def action_for_step(step) -> str:
    if step.channel == 'email':
        return ACTION_SEND_EMAIL
    if step.is_connection_request:
        return ACTION_LINKEDIN_CONNECTION
    return ACTION_LINKEDIN_MESSAGE


def build_task_title(step, prospect) -> str:
    """'<Action> to <company> - <job title> (<contact>) - Step <n>'.

    A prospect without a contact for the step's channel still gets a task;
    the parenthesised contact is simply left out.
    """
    title = f"{action_for_step(step)} to {prospect.company_name or ''} - {prospect.contact_job_title or ''}"
    contact = prospect.contact_for_channel(step.channel)
    if contact:
        title += f" ({contact})"
    return f"{title} - Step {step.step_number}"


def build_task(assignment, step, prospect, due_date: date) -> Task:
    return Task(
        user_id=assignment.user_id,
        title=build_task_title(step, prospect),
        description=step.message_template,
        due_date=due_date,
        source=TASK_SOURCE,
        priority=TASK_PRIORITY,
        sequence_id=assignment.sequence_id,
        assignment_id=assignment.id,
        step_number=step.step_number
    )


def find_task_for_step(assignment, step_number: int):
    return Task.query.filter_by(assignment_id=assignment.id, step_number=step_number).first()


def materialize_task(assignment, step, prospect, steps: Iterable, anchor: date) -> Tuple[Task, bool]:
    """
    Create and commit the task for one step of an assignment.

    Returns:
        (task, created) where created is False when the task already existed

    Raises:
        PersistenceError: if the insert fails for any reason other than a
        concurrent insert of the same (assignment, step) task
    """
    existing = find_task_for_step(assignment, step.step_number)
    if existing is not None:
        return existing, False
    
    assignment_id, step_number = assignment.id, step.step_number
    task = build_task(assignment, step, prospect, calculate_due_date(anchor, steps, step_number))
    try:
        db.session.add(task)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        existing = Task.query.filter_by(assignment_id=assignment_id, step_number=step_number).first()
        if existing is not None:
            return existing, False
        logger.error(f"Failed to create task for assignment {assignment_id} step {step_number}: {str(e)}")
        raise PersistenceError("task creation", e)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to create task for assignment {assignment_id} step {step_number}: {str(e)}")
        raise PersistenceError("task creation", e)
    
    logger.info(f"Materialized step {step_number} for assignment {assignment_id} due {task.due_date}")
    return task, True
