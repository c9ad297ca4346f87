"""
Attendance service for the School ERP backend
Daily attendance marking and the monthly summaries derived from it
"""

import logging
from collections import Counter, defaultdict
from datetime import date as date_type

from sqlalchemy import func

from models.academic import SchoolClass, Section
from models.assignments import ClassTeacherAssignment, TeacherClass, TeacherSection
from models.attendance import (DailyAttendance, MonthlyAttendance, PRESENT_STATUSES,
                               ABSENT_STATUSES, attendance_percentage)
from models.student import Student
from services.holiday_service import HolidayService, month_bounds
from utils.db_helpers import commit_or_rollback, get_or_404, upsert
from utils.errors import ValidationError
from utils.validators import (parse_date, parse_int, parse_month_year,
                              validate_attendance_status)

logger = logging.getLogger(__name__)

class AttendanceService:
    """Attendance service class"""

    def __init__(self, session, weekend_days=(5, 6)):
        self.session = session
        self.holidays = HolidayService(session, weekend_days=weekend_days)

    def _get_class_section(self, class_id, section_id):
        """Load class and section, checking the section belongs to the class"""
        school_class = get_or_404(self.session, SchoolClass, class_id, 'Class')
        section = get_or_404(self.session, Section, section_id, 'Section')
        if section.class_id != school_class.id:
            raise ValidationError(f"Section {section.name} does not belong to class {school_class.name}")
        return school_class, section

    def _active_students(self, class_id, section_id):
        return self.session.query(Student).filter_by(
            class_id=class_id,
            section_id=section_id,
            is_active=True
        ).order_by(Student.roll_no.asc(), Student.name.asc()).all()

    def mark_daily(self, class_id, section_id, date, records, remarks=None, marked_by_id=None):
        """Create or update one attendance row per student for a working day.

        Records whose student is not enrolled in the class/section, or whose
        status is invalid, are skipped and reported back. The batch and the
        monthly recomputation are committed together.
        """
        self._get_class_section(class_id, section_id)
        attendance_date = parse_date(date, 'date')

        if not self.holidays.is_working_day(attendance_date):
            raise ValidationError(
                f"{attendance_date.isoformat()} is not a working day; attendance cannot be marked"
            )

        if not isinstance(records, (list, tuple)) or not records:
            raise ValidationError("At least one attendance record is required")

        enrolled = {student.id: student for student in self._active_students(class_id, section_id)}
        existing = {
            row.student_id: row for row in self.session.query(DailyAttendance).filter(
                DailyAttendance.date == attendance_date,
                DailyAttendance.student_id.in_(list(enrolled))
            )
        }

        applied = []
        skipped = []
        seen = set()

        for record in records:
            raw_student_id = record.get('student_id') if isinstance(record, dict) else None
            try:
                student_id = parse_int(raw_student_id, 'student_id')
            except ValidationError as e:
                skipped.append({'student_id': raw_student_id, 'reason': e.message})
                continue

            if student_id in seen:
                skipped.append({'student_id': student_id, 'reason': 'Duplicate entry in batch'})
                continue
            if student_id not in enrolled:
                skipped.append({'student_id': student_id, 'reason': 'Student is not enrolled in this class/section'})
                continue

            status = str(record.get('status') or '').strip().upper()
            is_valid, message = validate_attendance_status(status)
            if not is_valid:
                skipped.append({'student_id': student_id, 'reason': message})
                continue

            seen.add(student_id)
            row_remarks = record.get('remarks') if record.get('remarks') is not None else remarks

            row = existing.get(student_id)
            if row is None:
                row = DailyAttendance(
                    student_id=student_id,
                    date=attendance_date,
                )
                self.session.add(row)
            row.class_id = class_id
            row.section_id = section_id
            row.status = status
            row.remarks = row_remarks
            row.marked_by_id = marked_by_id

            applied.append({'student_id': student_id, 'status': status})

        if skipped:
            logger.warning("Skipped %d attendance record(s) for class %s section %s on %s",
                           len(skipped), class_id, section_id, attendance_date)

        self.session.flush()
        self._recompute_monthly(class_id, section_id, attendance_date)
        commit_or_rollback(self.session, "Attendance has already been recorded for this date")

        logger.info("Marked attendance for %d student(s) in class %s section %s on %s",
                    len(applied), class_id, section_id, attendance_date)

        return {
            'date': attendance_date.isoformat(),
            'class_id': class_id,
            'section_id': section_id,
            'applied': applied,
            'skipped': skipped
        }

    def _recompute_monthly(self, class_id, section_id, reference_date):
        month_start, month_end = month_bounds(reference_date.month, reference_date.year)
        students = self._active_students(class_id, section_id)
        if not students:
            return []

        # rows on days that have since become holidays are ignored
        working_days = set(self.holidays.working_days(reference_date.month, reference_date.year))
        counts = defaultdict(Counter)
        rows = self.session.query(DailyAttendance.student_id, DailyAttendance.date, DailyAttendance.status).filter(
            DailyAttendance.student_id.in_([student.id for student in students]),
            DailyAttendance.date >= month_start,
            DailyAttendance.date <= month_end
        )
        for student_id, day, status in rows:
            if day not in working_days:
                continue
            if status in PRESENT_STATUSES:
                counts[student_id]['present'] += 1
            elif status in ABSENT_STATUSES:
                counts[student_id]['absent'] += 1

        summaries = []
        for student in students:
            present = counts[student.id]['present']
            absent = counts[student.id]['absent']
            summary = upsert(
                self.session,
                MonthlyAttendance,
                keys={'student_id': student.id, 'month': month_start, 'year': reference_date.year},
                values={
                    'class_id': class_id,
                    'section_id': section_id,
                    'present_count': present,
                    'absent_count': absent,
                    'percentage': attendance_percentage(present, absent)
                }
            )
            summaries.append(summary)
        return summaries

    def recompute_monthly(self, class_id, section_id, reference_date):
        """Rebuild the MonthlyAttendance rows of a class/section for one month"""
        self._get_class_section(class_id, section_id)
        reference_date = parse_date(reference_date, 'reference_date')

        summaries = self._recompute_monthly(class_id, section_id, reference_date)
        result = [summary.to_dict() for summary in summaries]
        commit_or_rollback(self.session)
        return result

    def get_daily(self, class_id, section_id, date):
        """Attendance of every enrolled student on a date, unmarked students shown as ABSENT"""
        self._get_class_section(class_id, section_id)
        attendance_date = parse_date(date, 'date')

        students = self._active_students(class_id, section_id)
        marked = {
            row.student_id: row for row in self.session.query(DailyAttendance).filter(
                DailyAttendance.date == attendance_date,
                DailyAttendance.class_id == class_id,
                DailyAttendance.section_id == section_id
            )
        }

        rows = []
        for student in students:
            record = marked.get(student.id)
            if record is not None:
                rows.append(record.to_dict())
                continue
            rows.append({
                'id': None,
                'student_id': student.id,
                'student': student.summary_dict(),
                'class_id': class_id,
                'section_id': section_id,
                'date': attendance_date.isoformat(),
                'status': 'ABSENT',
                'remarks': None,
                'marked_by': None,
                'is_marked': False
            })
        return rows

    def get_stats(self, class_id, section_id, month, year):
        """Monthly statistics for a class/section"""
        self._get_class_section(class_id, section_id)
        month, year = parse_month_year(month, year)
        month_start, month_end = month_bounds(month, year)

        working_days = self.holidays.working_days(month, year)
        total_students = len(self._active_students(class_id, section_id))

        average = self.session.query(func.avg(MonthlyAttendance.percentage)).filter(
            MonthlyAttendance.class_id == class_id,
            MonthlyAttendance.section_id == section_id,
            MonthlyAttendance.month == month_start,
            MonthlyAttendance.year == year
        ).scalar()

        per_day = defaultdict(Counter)
        rows = self.session.query(DailyAttendance.date, DailyAttendance.status).filter(
            DailyAttendance.class_id == class_id,
            DailyAttendance.section_id == section_id,
            DailyAttendance.date >= month_start,
            DailyAttendance.date <= month_end
        )
        working_set = set(working_days)
        for day, status in rows:
            if day not in working_set:
                continue
            if status in PRESENT_STATUSES:
                per_day[day]['present'] += 1
            elif status in ABSENT_STATUSES:
                per_day[day]['absent'] += 1

        daily_stats = []
        for day in working_days:
            present = per_day[day]['present']
            percentage = (present / total_students) * 100 if total_students else 0.0
            daily_stats.append({
                'date': day.isoformat(),
                'present_count': present,
                'absent_count': per_day[day]['absent'],
                'total_students': total_students,
                'percentage': round(percentage, 2)
            })

        return {
            'class_id': class_id,
            'section_id': section_id,
            'month': month,
            'year': year,
            'working_days': len(working_days),
            'total_students': total_students,
            'average_attendance': round(average or 0.0, 2),
            'daily_stats': daily_stats
        }

    def get_student_attendance(self, student_id, month, year):
        """One student's daily rows, status counts and stored summary for a month"""
        student = get_or_404(self.session, Student, student_id, 'Student')
        month, year = parse_month_year(month, year)
        month_start, month_end = month_bounds(month, year)

        records = self.session.query(DailyAttendance).filter(
            DailyAttendance.student_id == student.id,
            DailyAttendance.date >= month_start,
            DailyAttendance.date <= month_end
        ).order_by(DailyAttendance.date.asc()).all()

        summary = self.session.query(MonthlyAttendance).filter_by(
            student_id=student.id,
            month=month_start,
            year=year
        ).first()

        status_counts = Counter(record.status for record in records)
        return {
            'student': student.summary_dict(),
            'month': month,
            'year': year,
            'records': [record.to_dict() for record in records],
            'status_counts': dict(status_counts),
            'summary': summary.to_dict() if summary else None
        }

    def get_pending_days(self, teacher_id, month=None, year=None, as_of=None):
        """Working days of a month on which a class teacher's classes have no attendance.

        Only days up to ``as_of`` (default today) count as pending. Month and
        year default to those of ``as_of``.
        """
        as_of = parse_date(as_of, 'as_of') if as_of is not None else date_type.today()
        if month is None and year is None:
            month, year = as_of.month, as_of.year
        month, year = parse_month_year(month, year)

        assignments = self.session.query(ClassTeacherAssignment).filter_by(teacher_id=teacher_id).all()
        due_days = [day for day in self.holidays.working_days(month, year) if day <= as_of]

        classes = []
        pending = set()
        for assignment in assignments:
            marked = {
                row.date for row in self.session.query(DailyAttendance.date).filter(
                    DailyAttendance.class_id == assignment.class_id,
                    DailyAttendance.section_id == assignment.section_id,
                    DailyAttendance.date.in_(due_days)
                ).distinct()
            }
            missing = [day for day in due_days if day not in marked]
            pending.update(missing)
            classes.append({
                'class_id': assignment.class_id,
                'section_id': assignment.section_id,
                'pending_count': len(missing),
                'pending_dates': [day.isoformat() for day in missing]
            })

        return {
            'month': month,
            'year': year,
            'pending_count': len(pending),
            'pending_dates': [day.isoformat() for day in sorted(pending)],
            'classes': classes
        }

    def is_teacher_authorized(self, teacher_id, class_id, section_id, require_class_teacher=False):
        """Class teacher of the class/section, or (unless required) teaching both"""
        is_class_teacher = self.session.query(ClassTeacherAssignment).filter_by(
            teacher_id=teacher_id,
            class_id=class_id,
            section_id=section_id
        ).first() is not None

        if is_class_teacher or require_class_teacher:
            return is_class_teacher

        teaches_class = self.session.query(TeacherClass).filter_by(
            teacher_id=teacher_id, class_id=class_id
        ).first() is not None
        teaches_section = self.session.query(TeacherSection).filter_by(
            teacher_id=teacher_id, section_id=section_id
        ).first() is not None
        return teaches_class and teaches_section
