"""
Attendance models for the School ERP backend
DailyAttendance and MonthlyAttendance models
"""

from database import db
from datetime import datetime

# Statuses that count towards presence / absence in monthly rollups
PRESENT_STATUSES = ('PRESENT', 'LATE', 'HALF_DAY')
ABSENT_STATUSES = ('ABSENT', 'EXCUSED')

def attendance_percentage(present_count, absent_count):
    """present / (present + absent) * 100, or 0 when nothing was recorded"""
    total = present_count + absent_count
    if total == 0:
        return 0.0
    return (present_count / total) * 100

class DailyAttendance(db.Model):
    """One attendance mark per student per day"""
    __tablename__ = 'daily_attendance'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('section.id'), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(10), nullable=False)
    remarks = db.Column(db.String(200), nullable=True)
    marked_by_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    marked_by = db.relationship('Teacher')

    # Unique constraint to prevent duplicate attendance for same student and date
    __table_args__ = (db.UniqueConstraint('student_id', 'date', name='unique_student_date_attendance'),)

    def is_present(self):
        """Check if the status counts as present"""
        return self.status in PRESENT_STATUSES

    def is_absent(self):
        """Check if the status counts as absent"""
        return self.status in ABSENT_STATUSES

    def to_dict(self):
        """Convert attendance record to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student': self.student.summary_dict() if self.student else None,
            'class_id': self.class_id,
            'section_id': self.section_id,
            'date': self.date.isoformat() if self.date else None,
            'status': self.status,
            'remarks': self.remarks,
            'marked_by': self.marked_by.to_dict() if self.marked_by else None,
            'is_marked': True
        }

    def __repr__(self):
        return f'<DailyAttendance student={self.student_id} {self.date} {self.status}>'

class MonthlyAttendance(db.Model):
    """Per-student monthly rollup derived from DailyAttendance"""
    __tablename__ = 'monthly_attendance'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('section.id'), nullable=False)
    month = db.Column(db.Date, nullable=False)  # first day of the month
    year = db.Column(db.Integer, nullable=False)
    present_count = db.Column(db.Integer, nullable=False, default=0)
    absent_count = db.Column(db.Integer, nullable=False, default=0)
    percentage = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('student_id', 'month', 'year', name='unique_student_month_year'),)

    def to_dict(self):
        """Convert monthly summary to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'class_id': self.class_id,
            'section_id': self.section_id,
            'month': self.month.isoformat() if self.month else None,
            'year': self.year,
            'present_count': self.present_count,
            'absent_count': self.absent_count,
            'percentage': round(self.percentage, 2)
        }

    def __repr__(self):
        return f'<MonthlyAttendance student={self.student_id} {self.month:%Y-%m}: {self.percentage:.2f}%>'
