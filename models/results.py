"""
Result models for the School ERP backend
GradeDefinition, SubjectResult and OverallResult models
"""

from database import db
from datetime import datetime

# (grade, min_score, max_score, description) seeded by init_db.py
DEFAULT_GRADE_BANDS = (
    ('A+', 90, 100, 'Outstanding'),
    ('A', 80, 89.99, 'Excellent'),
    ('B+', 70, 79.99, 'Very Good'),
    ('B', 60, 69.99, 'Good'),
    ('C+', 50, 59.99, 'Above Average'),
    ('C', 40, 49.99, 'Average'),
    ('F', 0, 39.99, 'Fail'),
)

RESULT_STATUSES = ('PASSED', 'FAILED')

class GradeDefinition(db.Model):
    """Percentage band mapped to a grade letter"""
    __tablename__ = 'grade_definition'

    id = db.Column(db.Integer, primary_key=True)
    grade = db.Column(db.String(2), nullable=False, unique=True)
    min_score = db.Column(db.Float, nullable=False)
    max_score = db.Column(db.Float, nullable=False)
    description = db.Column(db.String(100), nullable=True)

    def contains(self, percentage):
        return self.min_score <= percentage <= self.max_score

    def to_dict(self):
        return {
            'id': self.id,
            'grade': self.grade,
            'min_score': self.min_score,
            'max_score': self.max_score,
            'description': self.description
        }

    def __repr__(self):
        return f'<GradeDefinition {self.grade}: {self.min_score}-{self.max_score}>'

class SubjectResult(db.Model):
    """Marks of one student in one subject for a term"""
    __tablename__ = 'subject_result'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subject.id'), nullable=False)
    academic_year = db.Column(db.String(20), nullable=False)
    term = db.Column(db.String(50), nullable=False)
    full_marks = db.Column(db.Float, nullable=False)
    pass_marks = db.Column(db.Float, nullable=False)
    theory_marks = db.Column(db.Float, nullable=False, default=0.0)
    practical_marks = db.Column(db.Float, nullable=False, default=0.0)
    total_marks = db.Column(db.Float, nullable=False, default=0.0)
    grade_id = db.Column(db.Integer, db.ForeignKey('grade_definition.id'), nullable=True)
    grade = db.Column(db.String(2), nullable=False)
    is_absent = db.Column(db.Boolean, nullable=False, default=False)
    is_locked = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subject = db.relationship('Subject')
    grade_definition = db.relationship('GradeDefinition')

    __table_args__ = (db.UniqueConstraint('student_id', 'subject_id', 'academic_year', 'term',
                                          name='unique_student_subject_year_term'),)

    @staticmethod
    def calculate_grade(percentage):
        """Fallback grade letter used when no GradeDefinition band matches"""
        if percentage >= 90:
            return 'A+'
        elif percentage >= 80:
            return 'A'
        elif percentage >= 70:
            return 'B+'
        elif percentage >= 60:
            return 'B'
        elif percentage >= 50:
            return 'C+'
        elif percentage >= 40:
            return 'C'
        else:
            return 'F'

    @property
    def percentage(self):
        if not self.full_marks:
            return 0.0
        return (self.total_marks / self.full_marks) * 100

    def is_failing(self):
        """Absent or below pass marks"""
        return bool(self.is_absent) or self.total_marks < self.pass_marks

    def to_dict(self):
        """Convert subject result to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'subject_id': self.subject_id,
            'subject_name': self.subject.name if self.subject else None,
            'academic_year': self.academic_year,
            'term': self.term,
            'full_marks': self.full_marks,
            'pass_marks': self.pass_marks,
            'theory_marks': self.theory_marks,
            'practical_marks': self.practical_marks,
            'total_marks': self.total_marks,
            'percentage': round(self.percentage, 2),
            'grade_id': self.grade_id,
            'grade': self.grade,
            'is_absent': self.is_absent,
            'is_locked': self.is_locked,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return (f'<SubjectResult student={self.student_id} subject={self.subject_id} '
                f'{self.academic_year}/{self.term}: {self.total_marks}/{self.full_marks}>')

class OverallResult(db.Model):
    """Pass/fail outcome of a student for a term, derived from SubjectResult rows"""
    __tablename__ = 'overall_result'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    academic_year = db.Column(db.String(20), nullable=False)
    term = db.Column(db.String(50), nullable=False)
    total_marks = db.Column(db.Float, nullable=False, default=0.0)
    total_full_marks = db.Column(db.Float, nullable=False, default=0.0)
    total_percentage = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(10), nullable=False)
    strongest_subject = db.Column(db.String(100), nullable=True)
    weakest_subject = db.Column(db.String(100), nullable=True)
    subjects_to_improve = db.Column(db.JSON, nullable=True)
    rank = db.Column(db.Integer, nullable=True)
    class_teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    class_teacher = db.relationship('Teacher')

    __table_args__ = (db.UniqueConstraint('student_id', 'academic_year', 'term',
                                          name='unique_student_year_term_result'),)

    def to_dict(self):
        """Convert overall result to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'academic_year': self.academic_year,
            'term': self.term,
            'total_marks': self.total_marks,
            'total_full_marks': self.total_full_marks,
            'total_percentage': round(self.total_percentage, 2),
            'status': self.status,
            'strongest_subject': self.strongest_subject,
            'weakest_subject': self.weakest_subject,
            'subjects_to_improve': self.subjects_to_improve or [],
            'rank': self.rank,
            'class_teacher_id': self.class_teacher_id,
            'class_teacher_name': self.class_teacher.name if self.class_teacher else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<OverallResult student={self.student_id} {self.academic_year}/{self.term}: {self.status}>'
