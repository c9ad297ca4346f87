"""
User models for the School ERP backend
User accounts plus the Teacher and Parent profiles attached to them
"""

from database import db
from datetime import datetime

ROLES = ('ADMIN', 'TEACHER', 'STUDENT', 'PARENT')

class User(db.Model):
    """Login account; authentication itself is handled outside this service"""
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(10), nullable=False, default='STUDENT')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    teacher = db.relationship('Teacher', backref='user', uselist=False)
    parent = db.relationship('Parent', backref='user', uselist=False)
    student = db.relationship('Student', backref='user', uselist=False)
    reports = db.relationship('Report', backref='user', lazy='dynamic')

    def is_admin(self):
        return self.role == 'ADMIN'

    def to_dict(self):
        """Convert user to dictionary"""
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'role': self.role,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

class Teacher(db.Model):
    """Teacher profile"""
    __tablename__ = 'teacher'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, unique=True)
    name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    class_teacher_assignments = db.relationship('ClassTeacherAssignment', backref='teacher', lazy='dynamic')
    class_assignments = db.relationship('TeacherClass', backref='teacher', lazy='dynamic')
    section_assignments = db.relationship('TeacherSection', backref='teacher', lazy='dynamic')
    feedbacks = db.relationship('Feedback', backref='teacher', lazy='dynamic')

    def to_dict(self):
        return {'id': self.id, 'user_id': self.user_id, 'name': self.name}

    def __repr__(self):
        return f'<Teacher {self.name}>'

class Parent(db.Model):
    """Parent profile; a parent may have several children enrolled"""
    __tablename__ = 'parent'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True, unique=True)
    name = db.Column(db.String(100), nullable=False)

    children = db.relationship('Student', backref='parent', lazy='dynamic')

    def __repr__(self):
        return f'<Parent {self.name}>'
