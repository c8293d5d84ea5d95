"""
Task list endpoints.

Completing a task is the only thing that moves an assignment forward, so the
completion endpoint hands straight over to the sequence engine.
"""

from datetime import date
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from src.models import db, Task
from src.services.sequence_engine import SequenceEngine, AdvanceResult
from src.services.sequence_engine.errors import SequenceEngineError
from src.utils.error_handling import (
    handle_validation_error,
    handle_not_found_error,
    handle_engine_error,
    validate_required_fields,
    handle_exception
)
import logging

logger = logging.getLogger(__name__)

task_bp = Blueprint('task', __name__)

PRIORITIES = ('low', 'medium', 'high')


def _parse_date(value):
    return date.fromisoformat(value) if value else None


@task_bp.route('/tasks', methods=['POST'])
@jwt_required()
def create_task():
    """Create a manual task."""
    try:
        data = request.get_json(silent=True)
        
        validation_error = validate_required_fields(data, ['title'])
        if validation_error:
            return validation_error
        
        priority = data.get('priority', 'medium')
        if priority not in PRIORITIES:
            return handle_validation_error(f"Invalid priority '{priority}'", {'allowed': list(PRIORITIES)})
        
        try:
            due_date = _parse_date(data.get('due_date'))
        except ValueError:
            return handle_validation_error("due_date must use YYYY-MM-DD")
        
        task = Task(
            user_id=get_jwt_identity(),
            title=data['title'],
            description=data.get('description'),
            due_date=due_date,
            priority=priority,
            source=data.get('source', 'other')
        )
        
        db.session.add(task)
        db.session.commit()
        
        return jsonify({
            'message': 'Task created successfully',
            'task': task.to_dict()
        }), 201
        
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating task: {str(e)}")
        return handle_exception(e, "task creation")


@task_bp.route('/tasks', methods=['GET'])
@jwt_required()
def list_tasks():
    """List the current user's tasks ordered by due date."""
    try:
        query = Task.query.filter_by(user_id=get_jwt_identity())
        
        completed = request.args.get('completed')
        if completed is not None:
            query = query.filter_by(completed=completed.lower() == 'true')
        
        sequence_id = request.args.get('sequence_id')
        if sequence_id:
            query = query.filter_by(sequence_id=sequence_id)
        
        try:
            due_before = _parse_date(request.args.get('due_before'))
        except ValueError:
            return handle_validation_error("due_before must use YYYY-MM-DD")
        if due_before:
            query = query.filter(Task.due_date <= due_before)
        
        tasks = query.order_by(Task.due_date.asc(), Task.step_number.asc()).all()
        return jsonify({
            'tasks': [task.to_dict() for task in tasks],
            'total': len(tasks)
        }), 200
        
    except Exception as e:
        logger.error(f"Error listing tasks: {str(e)}")
        return handle_exception(e, "task listing")


@task_bp.route('/tasks/<task_id>', methods=['GET'])
@jwt_required()
def get_task(task_id):
    """Get a specific task by ID."""
    try:
        task = Task.query.filter_by(id=task_id, user_id=get_jwt_identity()).first()
        if not task:
            return handle_not_found_error("Task", task_id)
        return jsonify({'task': task.to_dict()}), 200
    except Exception as e:
        logger.error(f"Error getting task: {str(e)}")
        return handle_exception(e, "task lookup")


@task_bp.route('/tasks/<task_id>/complete', methods=['POST'])
@jwt_required()
def complete_task(task_id):
    """Mark a task completed and advance the sequence it belongs to."""
    try:
        user_id = get_jwt_identity()
        task = Task.query.filter_by(id=task_id, user_id=user_id).first()
        if not task:
            return handle_not_found_error("Task", task_id)
        
        # Only the request that completes the task moves its sequence forward
        if task.completed:
            progression = AdvanceResult(task_id=task.id, sequence_id=task.sequence_id)
        else:
            task.mark_completed()
            db.session.commit()
            progression = SequenceEngine.from_config().advance_on_task_completion(task_id, user_id)
        
        return jsonify({
            'message': 'Task completed successfully',
            'task': task.to_dict(),
            'sequence_progress': progression.to_dict()
        }), 200
        
    except SequenceEngineError as e:
        return handle_engine_error(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error completing task: {str(e)}")
        return handle_exception(e, "task completion")
