"""
Student model for the School ERP backend
"""

from database import db
from datetime import datetime

class Student(db.Model):
    """Student enrolled in one class/section"""
    __tablename__ = 'student'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, unique=True)
    parent_id = db.Column(db.Integer, db.ForeignKey('parent.id'), nullable=True)
    name = db.Column(db.String(100), nullable=False)
    roll_no = db.Column(db.Integer, nullable=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('section.id'), nullable=False)
    admission_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    daily_attendance = db.relationship('DailyAttendance', backref='student', lazy='dynamic')
    monthly_attendance = db.relationship('MonthlyAttendance', backref='student', lazy='dynamic')
    subject_results = db.relationship('SubjectResult', backref='student', lazy='dynamic')
    overall_results = db.relationship('OverallResult', backref='student', lazy='dynamic')

    def belongs_to(self, class_id, section_id):
        """Check the student is active in the given class/section"""
        return bool(self.is_active) and self.class_id == class_id and self.section_id == section_id

    def summary_dict(self):
        """Compact form embedded in attendance and result rows"""
        return {'id': self.id, 'name': self.name, 'roll_no': self.roll_no}

    def to_dict(self):
        """Convert student to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'roll_no': self.roll_no,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'section_id': self.section_id,
            'section_name': self.section.name if self.section else None,
            'parent_id': self.parent_id,
            'admission_date': self.admission_date.isoformat() if self.admission_date else None,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Student {self.roll_no}: {self.name}>'
