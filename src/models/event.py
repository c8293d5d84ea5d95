import uuid
from datetime import datetime
from src.models import db
from sqlalchemy import JSON


class Event(db.Model):
    __tablename__ = 'events'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(255), nullable=True)
    sequence_id = db.Column(db.String(36), nullable=True, index=True)
    assignment_id = db.Column(db.String(36), nullable=True, index=True)
    task_id = db.Column(db.String(36), nullable=True)
    event_type = db.Column(db.String(50), nullable=False)
    # Event types: assignment_created, assignment_advanced, assignment_completed,
    # task_materialization_failed, sequence_deleted
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    meta_json = db.Column(JSON, nullable=True)
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'user_id': self.user_id,
            'sequence_id': self.sequence_id,
            'assignment_id': self.assignment_id,
            'task_id': self.task_id,
            'event_type': self.event_type,
            'timestamp': self.timestamp.isoformat(),
            'meta_json': self.meta_json
        }
    
    def __repr__(self):
        return f'<Event {self.event_type} for Assignment {self.assignment_id}>'
