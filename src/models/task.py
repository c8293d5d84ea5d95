import uuid
from datetime import datetime
from src.models import db
from sqlalchemy import UniqueConstraint


class Task(db.Model):
    __tablename__ = 'tasks'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(255), nullable=False, index=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    source = db.Column(db.String(50), nullable=False, default='other')  # outreach, other, ...
    priority = db.Column(db.String(20), nullable=False, default='medium')
    
    # Explicit links back to the sequence step that produced the task
    sequence_id = db.Column(db.String(36), db.ForeignKey('sequences.id'), nullable=True, index=True)
    assignment_id = db.Column(db.String(36), db.ForeignKey('sequence_assignments.id'), nullable=True)
    step_number = db.Column(db.Integer, nullable=True)
    
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    
    # One task per assignment step
    __table_args__ = (
        UniqueConstraint('assignment_id', 'step_number', name='uq_task_assignment_step'),
    )
    
    def mark_completed(self):
        self.completed = True
        self.completed_at = datetime.utcnow()
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'completed': self.completed,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
            'source': self.source,
            'priority': self.priority,
            'sequence_id': self.sequence_id,
            'assignment_id': self.assignment_id,
            'step_number': self.step_number,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
    
    def __repr__(self):
        return f'<Task {self.title}>'
