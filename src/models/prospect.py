import uuid
from datetime import datetime
from src.models import db


class Prospect(db.Model):
    __tablename__ = 'prospects'
    
    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(db.String(255), nullable=False, index=True)
    company_name = db.Column(db.String(255), nullable=False)
    contact_name = db.Column(db.String(255), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)
    contact_linkedin = db.Column(db.String(500), nullable=True)  # Profile URL
    contact_job_title = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(50), nullable=False, default='new')
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    
    # Relationships
    assignments = db.relationship('SequenceAssignment', backref='prospect', lazy=True)
    
    def contact_for_channel(self, channel):
        """Contact detail used to reach the prospect on a step's channel."""
        if channel == 'email':
            return self.contact_email
        return self.contact_linkedin
    
    def to_dict(self):
        return {
            'id': str(self.id),
            'user_id': self.user_id,
            'company_name': self.company_name,
            'contact_name': self.contact_name,
            'contact_email': self.contact_email,
            'contact_linkedin': self.contact_linkedin,
            'contact_job_title': self.contact_job_title,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
    
    def __repr__(self):
        return f'<Prospect {self.company_name}>'
