"""
Teacher assignment models for the School ERP backend
"""

from database import db
from datetime import datetime

class ClassTeacherAssignment(db.Model):
    """The class teacher responsible for one class/section"""
    __tablename__ = 'class_teacher_assignment'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('section.id'), nullable=False)
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('class_id', 'section_id', name='unique_class_teacher_per_section'),)

    def to_dict(self):
        return {
            'id': self.id,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher.name if self.teacher else None,
            'class_id': self.class_id,
            'section_id': self.section_id
        }

    def __repr__(self):
        return f'<ClassTeacherAssignment teacher={self.teacher_id} class={self.class_id}/{self.section_id}>'

class TeacherClass(db.Model):
    """A teacher who teaches some subject in a class"""
    __tablename__ = 'teacher_class'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)

    __table_args__ = (db.UniqueConstraint('teacher_id', 'class_id', name='unique_teacher_class'),)

class TeacherSection(db.Model):
    """A teacher who teaches some subject in a section"""
    __tablename__ = 'teacher_section'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=False)
    section_id = db.Column(db.Integer, db.ForeignKey('section.id'), nullable=False)

    __table_args__ = (db.UniqueConstraint('teacher_id', 'section_id', name='unique_teacher_section'),)
