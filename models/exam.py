"""
Exam models for the School ERP backend
Exam sittings and their per-student marks, the source of exam reports
"""

from database import db
from datetime import datetime

class Exam(db.Model):
    """A single exam paper held on a date"""
    __tablename__ = 'exam'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subject.id'), nullable=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('section.id'), nullable=True)
    date = db.Column(db.Date, nullable=False, index=True)
    total_marks = db.Column(db.Float, nullable=False, default=100)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    subject = db.relationship('Subject')
    results = db.relationship('ExamResult', backref='exam', lazy='select')

    def __repr__(self):
        return f'<Exam {self.name} on {self.date}>'

class ExamResult(db.Model):
    """Marks of one student in one exam"""
    __tablename__ = 'exam_result'

    id = db.Column(db.Integer, primary_key=True)
    exam_id = db.Column(db.Integer, db.ForeignKey('exam.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    marks_obtained = db.Column(db.Float, nullable=False)
    total_marks = db.Column(db.Float, nullable=False)

    __table_args__ = (db.UniqueConstraint('exam_id', 'student_id', name='unique_exam_student'),)

    @property
    def percentage(self):
        if not self.total_marks:
            return 0.0
        return (self.marks_obtained / self.total_marks) * 100
