"""
Core sequence engine functionality.

This module contains the SequenceEngine class, which owns the assignment
state machine:
- Assigning prospects to sequences and front-loading their tasks
- Advancing assignments when their tasks are completed
- Deleting sequences under the configured delete policy
- Guarded edits of sequence steps
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Dict, List, Optional, Any

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.config import DELETE_POLICIES
from src.extensions import db
from src.models import Sequence, SequenceStep, Prospect, SequenceAssignment, Task, Event
from .definition import (
    validate_step,
    validate_sequence_definition,
    normalize_step,
    ordered_step_payloads,
)
from .delay_calculator import build_schedule
from .errors import (
    Unauthenticated,
    NotFound,
    DuplicateAssignment,
    SequenceNotActive,
    SequenceLocked,
    InvalidSequence,
    PersistenceError,
)
from .task_materializer import materialize_task, find_task_for_step
from .timezone import anchor_date_for, get_sequence_timezone, to_local_date
from .title_resolver import legacy_title_fragment, resolve_sequence_for_title, title_references_sequence

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    """Outcome of assigning a prospect or re-syncing an assignment's tasks."""
    assignment: SequenceAssignment
    tasks: List[Task] = field(default_factory=list)
    created_steps: List[int] = field(default_factory=list)
    missing_steps: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing_steps

    def to_dict(self) -> Dict[str, Any]:
        return {
            'assignment': self.assignment.to_dict(),
            'tasks': [task.to_dict() for task in self.tasks],
            'created_steps': self.created_steps,
            'missing_steps': self.missing_steps,
            'complete': self.complete
        }


@dataclass
class AdvanceResult:
    """Outcome of advancing the assignments tied to a completed task."""
    task_id: str
    sequence_id: Optional[str] = None
    advanced: List[str] = field(default_factory=list)
    completed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def matched(self) -> bool:
        return self.sequence_id is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'task_id': self.task_id,
            'sequence_id': self.sequence_id,
            'advanced': self.advanced,
            'completed': self.completed,
            'skipped': self.skipped,
            'failed': self.failed
        }


class SequenceEngine:
    """Engine for assigning prospects to sequences and tracking their progress."""

    def __init__(self, delete_policy: str = 'soft'):
        if delete_policy not in DELETE_POLICIES:
            raise ValueError(f"Unknown sequence delete policy '{delete_policy}'")
        self.delete_policy = delete_policy

    @classmethod
    def from_config(cls) -> 'SequenceEngine':
        """Build an engine using the current app's configuration."""
        return cls(delete_policy=current_app.config.get('SEQUENCE_DELETE_POLICY', 'soft'))

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _require_user(self, user_id: Optional[str]) -> str:
        if not user_id:
            raise Unauthenticated()
        return user_id

    def get_sequence(self, sequence_id: str, user_id: str, include_deleted: bool = False) -> Sequence:
        self._require_user(user_id)
        sequence = Sequence.query.filter_by(id=sequence_id, user_id=user_id).first()
        if sequence is None or (sequence.is_deleted and not include_deleted):
            raise NotFound("Sequence", sequence_id)
        return sequence

    def get_prospect(self, prospect_id: str, user_id: str) -> Prospect:
        self._require_user(user_id)
        prospect = Prospect.query.filter_by(id=prospect_id, user_id=user_id).first()
        if prospect is None:
            raise NotFound("Prospect", prospect_id)
        return prospect

    def get_assignment(self, assignment_id: str, user_id: str) -> SequenceAssignment:
        self._require_user(user_id)
        assignment = SequenceAssignment.query.filter_by(id=assignment_id, user_id=user_id).first()
        if assignment is None:
            raise NotFound("Assignment", assignment_id)
        return assignment

    def _record_event(self, event_type: str, user_id: str, sequence_id: str = None,
                      assignment_id: str = None, task_id: str = None, meta: Dict[str, Any] = None):
        db.session.add(Event(
            event_type=event_type,
            user_id=user_id,
            sequence_id=sequence_id,
            assignment_id=assignment_id,
            task_id=task_id,
            meta_json=meta
        ))

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_prospect(self, sequence_id: str, prospect_id: str, user_id: str) -> AssignmentResult:
        """
        Bind a prospect to a sequence and materialize a task for every step.

        All due dates are computed from the assignment's creation time, so
        later edits to step delays never move tasks that already exist.

        Raises:
            Unauthenticated, NotFound, SequenceNotActive, DuplicateAssignment,
            PersistenceError (assignment insert only; task failures are
            reported through AssignmentResult.missing_steps)
        """
        self._require_user(user_id)
        sequence = self.get_sequence(sequence_id, user_id)
        if sequence.status != 'active':
            raise SequenceNotActive(sequence_id, sequence.status)
        prospect = self.get_prospect(prospect_id, user_id)

        existing = SequenceAssignment.query.filter_by(
            sequence_id=sequence_id, prospect_id=prospect_id, status='active'
        ).first()
        if existing is not None:
            raise DuplicateAssignment(sequence_id, prospect_id)

        steps = list(sequence.steps)
        assignment = SequenceAssignment(
            sequence_id=sequence_id,
            prospect_id=prospect_id,
            user_id=user_id,
            current_step=1,
            status='active',
            created_at=datetime.utcnow()
        )
        if not steps:
            assignment.mark_completed()

        try:
            db.session.add(assignment)
            db.session.flush()
            self._record_event(
                'assignment_created', user_id,
                sequence_id=sequence_id, assignment_id=assignment.id,
                meta={'prospect_id': prospect_id, 'total_steps': len(steps)}
            )
            db.session.commit()
        except IntegrityError:
            # Lost a race against another request for the same pair
            db.session.rollback()
            raise DuplicateAssignment(sequence_id, prospect_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to create assignment of prospect {prospect_id} to sequence {sequence_id}: {str(e)}")
            raise PersistenceError("assignment creation", e)

        logger.info(f"Assigned prospect {prospect_id} to sequence {sequence_id} ({len(steps)} steps)")

        result = AssignmentResult(assignment=assignment)
        self._materialize_steps(result, sequence, prospect, steps)
        return result

    def _materialize_steps(self, result: AssignmentResult, sequence: Sequence, prospect: Prospect, steps: List[SequenceStep]):
        """Materialize steps in order, stopping at the first persistence failure."""
        assignment = result.assignment
        assignment_id = assignment.id
        anchor = anchor_date_for(assignment, sequence)
        step_numbers = [step.step_number for step in steps]

        for index, step in enumerate(steps):
            try:
                task, created = materialize_task(assignment, step, prospect, steps, anchor)
            except PersistenceError as e:
                result.missing_steps = step_numbers[index:]
                logger.error(
                    f"Partial task creation for assignment {assignment_id}: "
                    f"steps {result.missing_steps} not materialized ({str(e.original)})"
                )
                self._record_failure(assignment_id, sequence.id, assignment.user_id, result.missing_steps, e)
                return
            result.tasks.append(task)
            if created:
                result.created_steps.append(step.step_number)

    def _record_failure(self, assignment_id: str, sequence_id: str, user_id: str, missing_steps: List[int], error: Exception):
        try:
            self._record_event(
                'task_materialization_failed', user_id,
                sequence_id=sequence_id, assignment_id=assignment_id,
                meta={'missing_steps': missing_steps, 'error': str(error)}
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Could not record materialization failure for assignment {assignment_id}: {str(e)}")

    def materialize_missing_tasks(self, assignment_id: str, user_id: str) -> AssignmentResult:
        """Create whichever tasks of an active assignment are missing."""
        assignment = self.get_assignment(assignment_id, user_id)
        result = AssignmentResult(assignment=assignment)
        if not assignment.is_active:
            return result

        sequence = assignment.sequence
        self._materialize_steps(result, sequence, assignment.prospect, list(sequence.steps))
        if result.created_steps:
            logger.info(f"Re-materialized steps {result.created_steps} for assignment {assignment_id}")
        return result

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def advance_on_task_completion(self, task_id: str, user_id: str) -> AdvanceResult:
        """
        Advance the assignment(s) behind a completed task.

        Tasks carrying an assignment_id advance only that assignment. Legacy
        tasks without one are resolved through the sequence name in their
        title and advance every active assignment of that sequence; an
        unresolvable title is a no-op. Each assignment is committed on its
        own so one failure never blocks the rest.
        """
        self._require_user(user_id)
        task = Task.query.filter_by(id=task_id, user_id=user_id).first()
        if task is None:
            raise NotFound("Task", task_id)

        result = AdvanceResult(task_id=task_id)

        if task.assignment_id:
            assignment = SequenceAssignment.query.filter_by(id=task.assignment_id, user_id=user_id).first()
            if assignment is None:
                return result
            result.sequence_id = assignment.sequence_id
            targets = [assignment]
            completed_step = task.step_number
        else:
            candidates = Sequence.query.filter_by(user_id=user_id, is_deleted=False).all()
            sequence = resolve_sequence_for_title(task.title, candidates)
            if sequence is None:
                logger.debug(f"Task {task_id} does not belong to any sequence")
                return result
            result.sequence_id = sequence.id
            targets = [a for a in sequence.assignments if a.is_active]
            completed_step = None

        for assignment in targets:
            assignment_id = assignment.id
            try:
                outcome = self._advance_assignment(assignment, completed_step, task_id)
            except (SQLAlchemyError, PersistenceError) as e:
                db.session.rollback()
                logger.error(f"Failed to advance assignment {assignment_id}: {str(e)}")
                result.failed[assignment_id] = str(e)
                continue
            getattr(result, outcome).append(assignment_id)

        return result

    def _advance_assignment(self, assignment: SequenceAssignment, completed_step: Optional[int], task_id: str) -> str:
        """
        Move one assignment's cursor forward.

        Returns 'advanced', 'completed' or 'skipped'. A completion for a
        step other than the current one is stale and skipped, which keeps
        retries from advancing twice. The cursor then passes over steps whose
        tasks are already completed.
        """
        if not assignment.is_active:
            return 'skipped'
        if completed_step is not None and completed_step != assignment.current_step:
            return 'skipped'

        sequence = assignment.sequence
        steps = list(sequence.steps)
        previous_step = assignment.current_step

        while True:
            assignment.current_step += 1
            if assignment.current_step > len(steps):
                assignment.mark_completed()
                self._record_event(
                    'assignment_completed', assignment.user_id,
                    sequence_id=sequence.id, assignment_id=assignment.id, task_id=task_id,
                    meta={'from_step': previous_step, 'total_steps': len(steps)}
                )
                db.session.commit()
                logger.info(f"Assignment {assignment.id} completed sequence {sequence.id}")
                return 'completed'

            existing = find_task_for_step(assignment, assignment.current_step)
            if existing is None or not existing.completed:
                break

        self._record_event(
            'assignment_advanced', assignment.user_id,
            sequence_id=sequence.id, assignment_id=assignment.id, task_id=task_id,
            meta={'from_step': previous_step, 'to_step': assignment.current_step}
        )
        db.session.commit()

        step = sequence.get_step(assignment.current_step)
        try:
            materialize_task(assignment, step, assignment.prospect, steps, anchor_date_for(assignment, sequence))
        except PersistenceError as e:
            # The cursor already moved; the task can be recovered with materialize_missing_tasks
            self._record_failure(assignment.id, sequence.id, assignment.user_id, [step.step_number], e)
        logger.info(f"Assignment {assignment.id} advanced to step {assignment.current_step}")
        return 'advanced'

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def _tasks_referencing(self, sequence: Sequence, user_id: str) -> List[Task]:
        linked = Task.query.filter_by(sequence_id=sequence.id).all()
        legacy = Task.query.filter(
            Task.user_id == user_id,
            Task.sequence_id.is_(None),
            Task.title.contains(legacy_title_fragment(sequence.name), autoescape=True)
        ).all()
        return linked + [t for t in legacy if title_references_sequence(t.title, sequence.name)]

    def delete_sequence(self, sequence_id: str, user_id: str) -> Dict[str, Any]:
        """Delete a sequence using this engine's delete policy."""
        if self.delete_policy == 'hard':
            return self._hard_delete(sequence_id, user_id)
        return self._soft_delete(sequence_id, user_id)

    def _soft_delete(self, sequence_id: str, user_id: str) -> Dict[str, Any]:
        """Keep every row; complete the tasks and assignments and flag the sequence."""
        sequence = self.get_sequence(sequence_id, user_id)
        try:
            tasks_completed = 0
            for task in self._tasks_referencing(sequence, user_id):
                if not task.completed:
                    task.mark_completed()
                    tasks_completed += 1

            assignments_completed = 0
            for assignment in sequence.assignments:
                if assignment.is_active:
                    assignment.mark_completed()
                    assignments_completed += 1

            sequence.is_deleted = True
            sequence.status = 'completed'
            self._record_event(
                'sequence_deleted', user_id, sequence_id=sequence_id,
                meta={'policy': 'soft', 'tasks_completed': tasks_completed,
                      'assignments_completed': assignments_completed}
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to soft delete sequence {sequence_id}: {str(e)}")
            raise PersistenceError("sequence deletion", e)

        logger.info(f"Soft deleted sequence {sequence_id}")
        return {
            'policy': 'soft',
            'sequence_id': sequence_id,
            'tasks_completed': tasks_completed,
            'assignments_completed': assignments_completed
        }

    def _hard_delete(self, sequence_id: str, user_id: str) -> Dict[str, Any]:
        """Remove the sequence together with its tasks and assignments."""
        sequence = self.get_sequence(sequence_id, user_id, include_deleted=True)
        try:
            tasks = self._tasks_referencing(sequence, user_id)
            for task in tasks:
                db.session.delete(task)
            db.session.flush()
            db.session.expire_all()

            assignments = list(sequence.assignments)
            for assignment in assignments:
                db.session.delete(assignment)
            db.session.flush()
            db.session.expire_all()

            db.session.delete(sequence)
            self._record_event(
                'sequence_deleted', user_id, sequence_id=sequence_id,
                meta={'policy': 'hard', 'tasks_deleted': len(tasks),
                      'assignments_deleted': len(assignments)}
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to hard delete sequence {sequence_id}: {str(e)}")
            raise PersistenceError("sequence deletion", e)

        logger.info(f"Hard deleted sequence {sequence_id}")
        return {
            'policy': 'hard',
            'sequence_id': sequence_id,
            'tasks_deleted': len(tasks),
            'assignments_deleted': len(assignments)
        }

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def validate_sequence_definition(self, steps: Any) -> Dict[str, Any]:
        """Validate a list of step payloads."""
        return validate_sequence_definition(steps)

    def preview_schedule(self, sequence: Sequence, anchor: Optional[date] = None) -> List[Dict[str, Any]]:
        """Due dates each step would get for an assignment anchored today (or at anchor)."""
        if anchor is None:
            anchor = to_local_date(datetime.utcnow(), get_sequence_timezone(sequence))
        return build_schedule(anchor, sequence.steps)

    def ensure_steps_editable(self, sequence: Sequence):
        active = len(sequence.active_assignments)
        if active:
            raise SequenceLocked(sequence.id, active)

    def replace_steps(self, sequence_id: str, user_id: str, steps: List[Dict[str, Any]]) -> Sequence:
        """Swap a sequence's whole step list."""
        sequence = self.get_sequence(sequence_id, user_id)
        self.ensure_steps_editable(sequence)

        validation = validate_sequence_definition(steps)
        if not validation['valid']:
            raise InvalidSequence("Invalid sequence definition", validation['errors'])
        if len(steps) > sequence.max_steps:
            raise InvalidSequence(f"Sequence allows at most {sequence.max_steps} steps")

        try:
            sequence.steps.clear()
            db.session.flush()
            for number, payload in enumerate(ordered_step_payloads(steps), start=1):
                sequence.steps.append(SequenceStep(**normalize_step(payload, number)))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to replace steps of sequence {sequence_id}: {str(e)}")
            raise PersistenceError("step update", e)

        logger.info(f"Replaced steps of sequence {sequence_id} ({len(steps)} steps)")
        return sequence

    def add_step(self, sequence_id: str, user_id: str, payload: Dict[str, Any]) -> SequenceStep:
        """Append a step after the current last one."""
        sequence = self.get_sequence(sequence_id, user_id)
        self.ensure_steps_editable(sequence)

        validation = validate_step(payload, sequence.total_steps + 1)
        if validation['errors']:
            raise InvalidSequence("Invalid step", validation['errors'])
        if sequence.total_steps >= sequence.max_steps:
            raise InvalidSequence(f"Sequence allows at most {sequence.max_steps} steps")

        step = SequenceStep(**normalize_step(payload, sequence.total_steps + 1))
        try:
            sequence.steps.append(step)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to add step to sequence {sequence_id}: {str(e)}")
            raise PersistenceError("step creation", e)
        return step

    def update_step(self, sequence_id: str, step_number: int, user_id: str, payload: Dict[str, Any]) -> SequenceStep:
        """Change one step in place; its number never changes."""
        sequence = self.get_sequence(sequence_id, user_id)
        self.ensure_steps_editable(sequence)
        step = sequence.get_step(step_number)
        if step is None:
            raise NotFound("Step", str(step_number))

        merged = step.to_dict()
        merged.update({k: v for k, v in payload.items() if k != 'step_number'})
        if merged.get('channel') != 'linkedin':
            merged['linkedin_action'] = None
        validation = validate_step(merged, step_number)
        if validation['errors']:
            raise InvalidSequence("Invalid step", validation['errors'])

        try:
            for column, value in normalize_step(merged, step_number).items():
                setattr(step, column, value)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to update step {step_number} of sequence {sequence_id}: {str(e)}")
            raise PersistenceError("step update", e)
        return step

    def delete_step(self, sequence_id: str, step_number: int, user_id: str) -> Sequence:
        """Remove a step and close the gap in numbering."""
        sequence = self.get_sequence(sequence_id, user_id)
        self.ensure_steps_editable(sequence)
        step = sequence.get_step(step_number)
        if step is None:
            raise NotFound("Step", str(step_number))

        try:
            sequence.steps.remove(step)
            db.session.flush()
            # One flush per renumber keeps (sequence_id, step_number) unique throughout
            for later in sorted(sequence.steps, key=lambda s: s.step_number):
                if later.step_number > step_number:
                    later.step_number -= 1
                    db.session.flush()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to delete step {step_number} of sequence {sequence_id}: {str(e)}")
            raise PersistenceError("step deletion", e)
        return sequence
