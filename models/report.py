"""
Report model for the School ERP backend
Append-only log of generated report files
"""

from database import db
from datetime import datetime

class Report(db.Model):
    """A generated PDF/Excel/CSV file and where to download it"""
    __tablename__ = 'report'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    format = db.Column(db.String(10), nullable=False)
    file_path = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    download_url = db.Column(db.String(500), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        """Public metadata; file_path stays server side"""
        return {
            'id': str(self.id),
            'title': self.title,
            'type': self.type,
            'format': self.format,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'download_url': self.download_url
        }

    def __repr__(self):
        return f'<Report {self.id}: {self.file_name}>'
