"""
Shared fixture builders for the test suites
"""

from types import SimpleNamespace
from datetime import date

from database import db
from models.user import User, Teacher, Parent
from models.academic import SchoolClass, Section, Subject, ClassSubject
from models.assignments import ClassTeacherAssignment, TeacherClass, TeacherSection
from models.student import Student

def make_user(role, email, name):
    user = User(email=email, name=name, role=role)
    db.session.add(user)
    db.session.flush()
    return user

def build_school(students_per_section=2, with_class_teacher=True):
    """Class 8 with sections A and B, two subjects, a class teacher of 8-A,
    a subject teacher, an admin, and a parent of the first student of 8-A"""
    school_class = SchoolClass(name='Class 8', numeric_level=8)
    db.session.add(school_class)
    db.session.flush()

    section_a = Section(name='A', class_id=school_class.id)
    section_b = Section(name='B', class_id=school_class.id)
    other_class = SchoolClass(name='Class 9', numeric_level=9)
    db.session.add_all([section_a, section_b, other_class])
    db.session.flush()
    other_section = Section(name='A', class_id=other_class.id)
    db.session.add(other_section)

    maths = Subject(name='Mathematics', code='MATH8')
    science = Subject(name='Science', code='SCI8')
    db.session.add_all([maths, science])
    db.session.flush()
    db.session.add_all([
        ClassSubject(class_id=school_class.id, subject_id=maths.id),
        ClassSubject(class_id=school_class.id, subject_id=science.id),
    ])

    admin_user = make_user('ADMIN', 'admin@school.test', 'Admin')

    teacher_user = make_user('TEACHER', 'class.teacher@school.test', 'Asha Rao')
    class_teacher = Teacher(user_id=teacher_user.id, name='Asha Rao')
    subject_teacher_user = make_user('TEACHER', 'subject.teacher@school.test', 'Ravi Kumar')
    subject_teacher = Teacher(user_id=subject_teacher_user.id, name='Ravi Kumar')
    db.session.add_all([class_teacher, subject_teacher])
    db.session.flush()

    if with_class_teacher:
        db.session.add(ClassTeacherAssignment(
            teacher_id=class_teacher.id, class_id=school_class.id, section_id=section_a.id
        ))
    db.session.add_all([
        TeacherClass(teacher_id=subject_teacher.id, class_id=school_class.id),
        TeacherSection(teacher_id=subject_teacher.id, section_id=section_a.id),
    ])

    parent_user = make_user('PARENT', 'parent@school.test', 'Meena Shetty')
    parent = Parent(user_id=parent_user.id, name='Meena Shetty')
    db.session.add(parent)
    db.session.flush()

    students_a = []
    students_b = []
    for index in range(students_per_section):
        user = make_user('STUDENT', f'student.a{index + 1}@school.test', f'Student A{index + 1}')
        student = Student(
            user_id=user.id,
            parent_id=parent.id if index == 0 else None,
            name=f'Student A{index + 1}',
            roll_no=index + 1,
            class_id=school_class.id,
            section_id=section_a.id,
            admission_date=date(2023, 6, 1)
        )
        students_a.append(student)
        students_b.append(Student(
            name=f'Student B{index + 1}',
            roll_no=index + 1,
            class_id=school_class.id,
            section_id=section_b.id
        ))
    db.session.add_all(students_a + students_b)
    db.session.commit()

    return SimpleNamespace(
        school_class=school_class,
        section=section_a,
        section_b=section_b,
        other_class=other_class,
        other_section=other_section,
        maths=maths,
        science=science,
        admin_user=admin_user,
        teacher_user=teacher_user,
        class_teacher=class_teacher,
        subject_teacher_user=subject_teacher_user,
        subject_teacher=subject_teacher,
        parent_user=parent_user,
        parent=parent,
        students=students_a,
        students_b=students_b
    )
