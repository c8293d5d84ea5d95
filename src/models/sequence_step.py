import uuid
from datetime import datetime
from src.models import db
from sqlalchemy import UniqueConstraint

CHANNELS = ('email', 'linkedin')
LINKEDIN_ACTIONS = ('connection', 'message')


class SequenceStep(db.Model):
    __tablename__ = 'sequence_steps'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sequence_id = db.Column(db.String(36), db.ForeignKey('sequences.id'), nullable=False)
    step_number = db.Column(db.Integer, nullable=False)  # 1-based, dense within a sequence
    channel = db.Column(db.String(20), nullable=False, default='email')  # email, linkedin
    linkedin_action = db.Column(db.String(20), nullable=True)  # connection, message (linkedin only)
    message_template = db.Column(db.Text, nullable=True)
    delay_days = db.Column(db.Integer, nullable=False, default=0)  # Days after the previous step
    preferred_time = db.Column(db.String(5), nullable=True)  # HH:MM, informational only
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    
    __table_args__ = (
        UniqueConstraint('sequence_id', 'step_number', name='uq_sequence_step_number'),
    )
    
    @property
    def is_connection_request(self):
        return self.channel == 'linkedin' and self.linkedin_action == 'connection'
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'sequence_id': str(self.sequence_id),
            'step_number': self.step_number,
            'channel': self.channel,
            'linkedin_action': self.linkedin_action,
            'message_template': self.message_template,
            'delay_days': self.delay_days,
            'preferred_time': self.preferred_time
        }
    
    def __repr__(self):
        return f'<SequenceStep {self.step_number} ({self.channel}) of {self.sequence_id}>'
