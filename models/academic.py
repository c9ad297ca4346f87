"""
Academic structure models for the School ERP backend
SchoolClass, Section, Subject and ClassSubject models
"""

from database import db
from datetime import datetime

class SchoolClass(db.Model):
    """A grade/standard, e.g. 'Class 8'"""
    __tablename__ = 'school_class'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    numeric_level = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    sections = db.relationship('Section', backref='school_class', lazy='dynamic')
    students = db.relationship('Student', backref='school_class', lazy='dynamic')
    class_subjects = db.relationship('ClassSubject', backref='school_class', lazy='dynamic')

    def get_subject_ids(self):
        """Subjects every student of this class is expected to sit"""
        return [cs.subject_id for cs in self.class_subjects]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'numeric_level': self.numeric_level,
            'sections': [section.name for section in self.sections]
        }

    def __repr__(self):
        return f'<SchoolClass {self.name}>'

class Section(db.Model):
    """A division of a class, e.g. 'A'"""
    __tablename__ = 'section'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)

    students = db.relationship('Student', backref='section', lazy='dynamic')

    __table_args__ = (db.UniqueConstraint('class_id', 'name', name='unique_section_name_per_class'),)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'class_id': self.class_id}

    def __repr__(self):
        return f'<Section {self.name} of class {self.class_id}>'

class Subject(db.Model):
    """Subject taught in one or more classes"""
    __tablename__ = 'subject'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    class_links = db.relationship('ClassSubject', backref='subject', lazy='dynamic')

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'code': self.code}

    def __repr__(self):
        return f'<Subject {self.code}: {self.name}>'

class ClassSubject(db.Model):
    """Subject offered to a class"""
    __tablename__ = 'class_subject'

    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    subject_id = db.Column(db.Integer, db.ForeignKey('subject.id'), nullable=False)

    __table_args__ = (db.UniqueConstraint('class_id', 'subject_id', name='unique_class_subject'),)

    def __repr__(self):
        return f'<ClassSubject class={self.class_id} subject={self.subject_id}>'
