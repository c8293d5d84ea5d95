import uuid
from datetime import datetime
from src.models import db

SEQUENCE_STATUSES = ('active', 'paused', 'completed')


class Sequence(db.Model):
    __tablename__ = 'sequences'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(255), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(50), nullable=False, default='active')  # active, paused, completed
    is_deleted = db.Column(db.Boolean, nullable=False, default=False)
    max_steps = db.Column(db.Integer, nullable=False, default=5)
    timezone = db.Column(db.String(50), nullable=False, default='UTC')  # IANA timezone format
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    
    # Relationships
    steps = db.relationship(
        'SequenceStep', backref='sequence', lazy=True,
        cascade='all, delete-orphan', order_by='SequenceStep.step_number'
    )
    assignments = db.relationship('SequenceAssignment', backref='sequence', lazy=True)
    
    @property
    def total_steps(self):
        return len(self.steps)
    
    @property
    def active_assignments(self):
        return [a for a in self.assignments if a.status == 'active']
    
    def get_step(self, step_number):
        """Return the step with the given 1-based number, or None."""
        for step in self.steps:
            if step.step_number == step_number:
                return step
        return None
    
    def to_dict(self, include_steps=False):
        data = {
            'id': str(self.id),
            'user_id': self.user_id,
            'name': self.name,
            'description': self.description,
            'status': self.status,
            'is_deleted': self.is_deleted,
            'max_steps': self.max_steps,
            'timezone': self.timezone,
            'total_steps': self.total_steps,
            'active_assignments': len(self.active_assignments),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
        if include_steps:
            data['steps'] = [step.to_dict() for step in self.steps]
        return data
    
    def __repr__(self):
        return f'<Sequence {self.name}>'
