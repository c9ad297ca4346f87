"""
Result service for the School ERP backend
Subject marks, grade resolution and per-term overall results
"""

import logging

from models.academic import ClassSubject, SchoolClass, Section, Subject
from models.assignments import ClassTeacherAssignment, TeacherClass
from models.results import GradeDefinition, OverallResult, SubjectResult
from models.student import Student
from utils.db_helpers import commit_or_rollback, get_or_404, upsert
from utils.errors import (ConflictError, NotFoundError, ResultLockedError,
                          ServiceError, ValidationError)
from utils.validators import parse_bool, validate_marks

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('full_marks', 'pass_marks', 'theory_marks', 'practical_marks', 'is_absent')

def _to_float(value, field_name, default=None):
    if value is None or value == '':
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a valid number")

class ResultService:
    """Result service class"""

    def __init__(self, session, pass_percentage=40, improvement_threshold=50, lock_on_create=True):
        self.session = session
        self.pass_percentage = pass_percentage
        self.improvement_threshold = improvement_threshold
        self.lock_on_create = lock_on_create

    def _get_class_section(self, class_id, section_id):
        school_class = get_or_404(self.session, SchoolClass, class_id, 'Class')
        section = get_or_404(self.session, Section, section_id, 'Section')
        if section.class_id != school_class.id:
            raise ValidationError(f"Section {section.name} does not belong to class {school_class.name}")
        return school_class, section

    # ---------------------------------------------------------------- grades

    def grade_for_percentage(self, percentage):
        """Return (GradeDefinition or None, grade letter) for a percentage"""
        score = round(percentage, 2)
        definition = self.session.query(GradeDefinition).filter(
            GradeDefinition.min_score <= score,
            GradeDefinition.max_score >= score
        ).order_by(GradeDefinition.min_score.desc()).first()

        if definition is not None:
            return definition, definition.grade
        return None, SubjectResult.calculate_grade(percentage)

    @staticmethod
    def _clean_marks(full_marks, pass_marks, theory_marks, practical_marks, is_absent):
        full = _to_float(full_marks, 'Full marks')
        passing = _to_float(pass_marks, 'Pass marks')
        if full is None or passing is None:
            raise ValidationError("Full marks and pass marks are required")
        if full <= 0:
            raise ValidationError("Full marks must be greater than zero")
        if passing < 0 or passing > full:
            raise ValidationError("Pass marks must be between 0 and full marks")

        if is_absent:
            return full, passing, 0.0, 0.0, 0.0

        theory = _to_float(theory_marks, 'Theory marks')
        practical = _to_float(practical_marks, 'Practical marks')
        if theory is None and practical is None:
            raise ValidationError("Theory or practical marks are required unless the student is absent")
        theory = theory or 0.0
        practical = practical or 0.0

        for value, label in ((theory, 'Theory marks'), (practical, 'Practical marks')):
            is_valid, message = validate_marks(value, full, label)
            if not is_valid:
                raise ValidationError(message)

        total = theory + practical
        is_valid, message = validate_marks(total, full, 'Total marks')
        if not is_valid:
            raise ValidationError(message)

        return full, passing, theory, practical, total

    def _apply_grade(self, result):
        definition, letter = self.grade_for_percentage(result.percentage)
        result.grade_id = definition.id if definition else None
        result.grade = letter

    # --------------------------------------------------------- subject marks

    def add_subject_result(self, student_id, subject_id, academic_year, term, full_marks,
                           pass_marks, theory_marks=None, practical_marks=None, is_absent=False):
        """Record a student's marks in one subject and refresh the overall result"""
        if not academic_year or not term:
            raise ValidationError("Academic year and term are required")

        is_absent = parse_bool(is_absent)
        full, passing, theory, practical, total = self._clean_marks(
            full_marks, pass_marks, theory_marks, practical_marks, is_absent
        )

        student = get_or_404(self.session, Student, student_id, 'Student')
        subject = get_or_404(self.session, Subject, subject_id, 'Subject')

        duplicate = self.session.query(SubjectResult).filter_by(
            student_id=student.id,
            subject_id=subject.id,
            academic_year=academic_year,
            term=term
        ).first()
        if duplicate:
            raise ConflictError(
                f"Result for {subject.name} already exists for this student in {academic_year} {term}",
                details={'result_id': duplicate.id}
            )

        result = SubjectResult(
            student_id=student.id,
            subject_id=subject.id,
            academic_year=academic_year,
            term=term,
            full_marks=full,
            pass_marks=passing,
            theory_marks=theory,
            practical_marks=practical,
            total_marks=total,
            is_absent=is_absent,
            is_locked=self.lock_on_create
        )
        self._apply_grade(result)
        self.session.add(result)

        overall = self._refresh_overall(student.id, academic_year, term)
        commit_or_rollback(self.session, "Subject result already exists")

        logger.info("Added %s result for student %s (%s %s): %s/%s",
                    subject.code, student.id, academic_year, term, total, full)
        return {'subject_result': result.to_dict(), 'overall_result': overall}

    def update_subject_result(self, result_id, changes):
        """Change the marks of an unlocked subject result.

        ``changes`` maps field names from EDITABLE_FIELDS to new values; any
        other key is rejected.
        """
        if not isinstance(changes, dict):
            raise ValidationError("Changes must be an object of field values")

        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(unknown)}")

        result = get_or_404(self.session, SubjectResult, result_id, 'Subject result')
        if result.is_locked:
            raise ResultLockedError("Subject result is locked and cannot be modified")

        is_absent = parse_bool(changes['is_absent']) if 'is_absent' in changes else result.is_absent
        full, passing, theory, practical, total = self._clean_marks(
            changes.get('full_marks', result.full_marks),
            changes.get('pass_marks', result.pass_marks),
            changes.get('theory_marks', result.theory_marks),
            changes.get('practical_marks', result.practical_marks),
            is_absent
        )

        result.full_marks = full
        result.pass_marks = passing
        result.theory_marks = theory
        result.practical_marks = practical
        result.total_marks = total
        result.is_absent = is_absent
        self._apply_grade(result)

        overall = self._refresh_overall(result.student_id, result.academic_year, result.term)
        commit_or_rollback(self.session)
        return {'subject_result': result.to_dict(), 'overall_result': overall}

    def set_lock(self, result_id, is_locked):
        result = get_or_404(self.session, SubjectResult, result_id, 'Subject result')
        result.is_locked = parse_bool(is_locked)
        commit_or_rollback(self.session)
        logger.info("Subject result %s %s", result.id, 'locked' if result.is_locked else 'unlocked')
        return result.to_dict()

    def get_subject_results(self, student_id, academic_year=None, term=None):
        get_or_404(self.session, Student, student_id, 'Student')
        query = self.session.query(SubjectResult).filter_by(student_id=student_id)
        if academic_year:
            query = query.filter_by(academic_year=academic_year)
        if term:
            query = query.filter_by(term=term)
        return [result.to_dict() for result in query.order_by(SubjectResult.subject_id.asc()).all()]

    def get_class_subject_results(self, class_id, section_id, subject_id, academic_year, term):
        """Results of every student of a class/section in one subject, by roll number"""
        if not academic_year or not term:
            raise ValidationError("Academic year and term are required")
        self._get_class_section(class_id, section_id)
        get_or_404(self.session, Subject, subject_id, 'Subject')

        students = self.session.query(Student.id).filter_by(class_id=class_id, section_id=section_id).all()
        if not students:
            raise NotFoundError("No students found in the specified class/section")

        results = self.session.query(SubjectResult).join(Student).filter(
            SubjectResult.student_id.in_([student.id for student in students]),
            SubjectResult.subject_id == subject_id,
            SubjectResult.academic_year == academic_year,
            SubjectResult.term == term
        ).order_by(Student.roll_no.asc(), Student.name.asc()).all()

        rows = []
        for result in results:
            data = result.to_dict()
            data['student'] = result.student.summary_dict()
            rows.append(data)
        return rows

    # ------------------------------------------------------- overall results

    def _class_teacher_for(self, student):
        assignment = self.session.query(ClassTeacherAssignment).filter_by(
            class_id=student.class_id,
            section_id=student.section_id
        ).first()
        if assignment:
            return assignment.teacher_id

        teaches_class = self.session.query(TeacherClass).filter_by(class_id=student.class_id).first()
        if teaches_class:
            return teaches_class.teacher_id

        logger.warning("No teacher found for class %s section %s", student.class_id, student.section_id)
        raise NotFoundError("No class teacher is assigned to the student's class")

    def _calculate_overall(self, student_id, academic_year, term):
        student = get_or_404(self.session, Student, student_id, 'Student')

        results = self.session.query(SubjectResult).filter_by(
            student_id=student.id,
            academic_year=academic_year,
            term=term
        ).all()
        if not results:
            raise NotFoundError(f"No subject results found for {academic_year} {term}")

        total_marks = sum(result.total_marks for result in results)
        total_full_marks = sum(result.full_marks for result in results)
        total_percentage = (total_marks / total_full_marks) * 100 if total_full_marks else 0.0

        if any(result.is_failing() for result in results):
            status = 'FAILED'
        else:
            status = 'PASSED' if total_percentage >= self.pass_percentage else 'FAILED'

        ranked = sorted(results, key=lambda result: result.percentage, reverse=True)
        subject_names = [result.subject.name for result in ranked]
        subjects_to_improve = [result.subject.name for result in ranked
                               if result.percentage < self.improvement_threshold]

        overall = upsert(
            self.session,
            OverallResult,
            keys={'student_id': student.id, 'academic_year': academic_year, 'term': term},
            values={
                'total_marks': total_marks,
                'total_full_marks': total_full_marks,
                'total_percentage': total_percentage,
                'status': status,
                'strongest_subject': subject_names[0],
                'weakest_subject': subject_names[-1],
                'subjects_to_improve': subjects_to_improve,
                'class_teacher_id': self._class_teacher_for(student)
            }
        )

        completed = len({result.subject_id for result in results})
        total_subjects = self.session.query(ClassSubject).filter_by(class_id=student.class_id).count()

        data = overall.to_dict()
        data.update({
            'completed_subjects': completed,
            'total_subjects': total_subjects,
            'processing_status': 'COMPLETE' if completed >= total_subjects else 'IN_PROGRESS'
        })
        return data

    def _refresh_overall(self, student_id, academic_year, term):
        self.session.flush()
        try:
            return self._calculate_overall(student_id, academic_year, term)
        except ServiceError:
            self.session.rollback()
            raise

    def calculate_overall_result(self, student_id, academic_year, term):
        """Derive and store the overall result of a student for a term"""
        data = self._refresh_overall(student_id, academic_year, term)
        commit_or_rollback(self.session)
        return data

    def get_overall_result(self, student_id, academic_year, term):
        overall = self.session.query(OverallResult).filter_by(
            student_id=student_id,
            academic_year=academic_year,
            term=term
        ).first()
        if not overall:
            raise NotFoundError(f"Overall result for student {student_id} in {academic_year} {term} not found")

        data = overall.to_dict()
        data['subject_results'] = self.get_subject_results(student_id, academic_year, term)
        return data

    def recalculate_class_results(self, class_id, section_id, academic_year, term):
        """Recalculate overall results of every active student of a class/section"""
        self._get_class_section(class_id, section_id)

        students = self.session.query(Student).filter_by(
            class_id=class_id,
            section_id=section_id,
            is_active=True
        ).all()

        updated = 0
        failed = 0
        errors = []
        for student in students:
            try:
                self.calculate_overall_result(student.id, academic_year, term)
                updated += 1
            except ServiceError as e:
                failed += 1
                errors.append({'student_id': student.id, 'message': e.message})
                logger.warning("Failed to update result for student %s: %s", student.id, e.message)

        logger.info("Recalculated results for class %s section %s: %d updated, %d failed",
                    class_id, section_id, updated, failed)
        return {'updated': updated, 'failed': failed, 'errors': errors}
