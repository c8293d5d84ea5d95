import uuid
from datetime import datetime
from src.models import db


class SequenceAssignment(db.Model):
    __tablename__ = 'sequence_assignments'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sequence_id = db.Column(db.String(36), db.ForeignKey('sequences.id'), nullable=False)
    prospect_id = db.Column(db.String(36), db.ForeignKey('prospects.id'), nullable=False)
    user_id = db.Column(db.String(255), nullable=False, index=True)
    current_step = db.Column(db.Integer, nullable=False, default=1)  # 1-based cursor
    status = db.Column(db.String(50), nullable=False, default='active')  # active, completed
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)  # Anchor for due dates
    completed_at = db.Column(db.DateTime, nullable=True)
    
    # Relationships
    tasks = db.relationship('Task', backref='assignment', lazy=True)
    
    # At most one active assignment per (prospect, sequence), enforced by the database
    __table_args__ = (
        db.Index(
            'uq_active_sequence_assignment', 'sequence_id', 'prospect_id',
            unique=True,
            sqlite_where=db.text("status = 'active'"),
            postgresql_where=db.text("status = 'active'"),
        ),
    )
    
    @property
    def is_active(self):
        return self.status == 'active'
    
    def mark_completed(self):
        self.status = 'completed'
        self.completed_at = datetime.utcnow()
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'sequence_id': str(self.sequence_id),
            'prospect_id': str(self.prospect_id),
            'user_id': self.user_id,
            'current_step': self.current_step,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None
        }
    
    def __repr__(self):
        return f'<SequenceAssignment {self.id} step={self.current_step} ({self.status})>'
