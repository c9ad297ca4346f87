"""
Report service for the School ERP backend
Assembles report data and writes PDF, Excel or CSV files with a download log
"""

import calendar
import logging
import os
import tempfile
from collections import Counter, defaultdict
from datetime import datetime

from sqlalchemy import func
from werkzeug.utils import secure_filename

from models.academic import SchoolClass, Section
from models.attendance import DailyAttendance, PRESENT_STATUSES
from models.exam import Exam, ExamResult
from models.finance import Feedback, FinancialTransaction
from models.report import Report
from models.student import Student
from models.user import Teacher
from services.csv_export_service import CsvExportService
from services.excel_export_service import ExcelExportService
from services.holiday_service import HolidayService, month_bounds
from services.pdf_export_service import PdfExportService
from utils.db_helpers import commit_or_rollback, get_or_404
from utils.errors import NotFoundError, ValidationError
from utils.validators import REPORT_FORMATS, REPORT_TYPES, parse_int, parse_month_year

logger = logging.getLogger(__name__)

FILE_EXTENSIONS = {'pdf': 'pdf', 'excel': 'xlsx', 'csv': 'csv'}

# report type -> (table headers, record keys, percentage columns)
REPORT_LAYOUTS = {
    'attendance': (['Class', 'Attendance Percentage'], ['class', 'attendance'], (1,)),
    'performance': (['Teacher Name', 'Feedback Count'], ['name', 'count'], ()),
    'financial': (['Category', 'Amount'], ['category', 'amount'], ()),
    'exam': (['Subject', 'Average Score'], ['subject', 'average'], (1,)),
}

def _percent(part, whole):
    return round((part / whole) * 100, 2) if whole else 0

class ReportService:
    """Report service class"""

    def __init__(self, session, reports_dir, recent_limit=10, pass_percentage=40,
                 distinction_percentage=75, weekend_days=(5, 6)):
        self.session = session
        self.reports_dir = reports_dir
        self.recent_limit = recent_limit
        self.pass_percentage = pass_percentage
        self.distinction_percentage = distinction_percentage
        self.holidays = HolidayService(session, weekend_days=weekend_days)

    # ---------------------------------------------------------- data assembly

    def _scope(self, options):
        """Validate month/year and the optional class/section filters"""
        month, year = parse_month_year(options.get('month'), options.get('year'))
        class_id = parse_int(options.get('class_id'), 'class_id', required=False)
        section_id = parse_int(options.get('section_id'), 'section_id', required=False)

        if class_id is not None:
            get_or_404(self.session, SchoolClass, class_id, 'Class')
        if section_id is not None:
            section = get_or_404(self.session, Section, section_id, 'Section')
            if class_id is not None and section.class_id != class_id:
                raise ValidationError("Section does not belong to the selected class")

        start, end = month_bounds(month, year)
        return {
            'month': month,
            'year': year,
            'class_id': class_id,
            'section_id': section_id,
            'start': start,
            'end': end
        }

    def _student_count(self, scope):
        query = self.session.query(Student).filter(Student.is_active.is_(True))
        if scope['class_id'] is not None:
            query = query.filter(Student.class_id == scope['class_id'])
        if scope['section_id'] is not None:
            query = query.filter(Student.section_id == scope['section_id'])
        return query.count()

    def _attendance_data(self, scope):
        query = self.session.query(SchoolClass.name, DailyAttendance.status).select_from(DailyAttendance).join(
            SchoolClass, SchoolClass.id == DailyAttendance.class_id
        ).filter(
            DailyAttendance.date >= scope['start'],
            DailyAttendance.date <= scope['end']
        )
        if scope['class_id'] is not None:
            query = query.filter(DailyAttendance.class_id == scope['class_id'])
        if scope['section_id'] is not None:
            query = query.filter(DailyAttendance.section_id == scope['section_id'])

        per_class = defaultdict(Counter)
        for class_name, status in query:
            per_class[class_name]['total'] += 1
            if status in PRESENT_STATUSES:
                per_class[class_name]['present'] += 1

        classwise_data = [
            {'class': name, 'attendance': _percent(counts['present'], counts['total'])}
            for name, counts in sorted(per_class.items())
        ]
        total_present = sum(counts['present'] for counts in per_class.values())
        total_records = sum(counts['total'] for counts in per_class.values())

        return {
            'total_students': self._student_count(scope),
            'average_attendance': _percent(total_present, total_records),
            'days_in_month': scope['end'].day,
            'working_days': len(self.holidays.working_days(scope['month'], scope['year'])),
            'classwise_data': classwise_data,
            'records': classwise_data
        }

    def _performance_data(self, scope):
        period_start = datetime.combine(scope['start'], datetime.min.time())
        period_end = datetime.combine(scope['end'], datetime.max.time())

        query = self.session.query(Teacher.name, func.count(Feedback.id)).join(
            Feedback, Feedback.teacher_id == Teacher.id
        ).filter(
            Feedback.created_at >= period_start,
            Feedback.created_at <= period_end
        )
        if scope['class_id'] is not None or scope['section_id'] is not None:
            query = query.join(Student, Student.id == Feedback.student_id)
            if scope['class_id'] is not None:
                query = query.filter(Student.class_id == scope['class_id'])
            if scope['section_id'] is not None:
                query = query.filter(Student.section_id == scope['section_id'])

        counts = query.group_by(Teacher.id, Teacher.name).all()
        records = [{'name': name, 'count': count}
                   for name, count in sorted(counts, key=lambda item: (-item[1], item[0]))]

        return {
            'total_teachers': self.session.query(Teacher).count(),
            'total_feedbacks': sum(record['count'] for record in records),
            'top_teachers': records[:5],
            'records': records
        }

    def _financial_data(self, scope):
        totals = dict(self.session.query(
            FinancialTransaction.type, func.sum(FinancialTransaction.amount)
        ).filter(
            FinancialTransaction.date >= scope['start'],
            FinancialTransaction.date <= scope['end']
        ).group_by(FinancialTransaction.type).all())

        total_revenue = round(float(totals.get('INCOME') or 0), 2)
        total_expenses = round(float(totals.get('EXPENSE') or 0), 2)

        category_rows = self.session.query(
            FinancialTransaction.category, func.sum(FinancialTransaction.amount)
        ).filter(
            FinancialTransaction.type == 'INCOME',
            FinancialTransaction.date >= scope['start'],
            FinancialTransaction.date <= scope['end']
        ).group_by(FinancialTransaction.category).all()
        categories = sorted(
            ({'category': category, 'amount': round(float(amount or 0), 2)} for category, amount in category_rows),
            key=lambda item: (-item['amount'], item['category'])
        )

        return {
            'total_revenue': total_revenue,
            'total_expenses': total_expenses,
            'balance': round(total_revenue - total_expenses, 2),
            'categories': categories,
            'records': categories
        }

    def _exam_data(self, scope):
        query = self.session.query(ExamResult, Exam).join(Exam, Exam.id == ExamResult.exam_id).filter(
            Exam.date >= scope['start'],
            Exam.date <= scope['end']
        )
        if scope['class_id'] is not None:
            query = query.filter(Exam.class_id == scope['class_id'])
        if scope['section_id'] is not None:
            query = query.filter(Exam.section_id == scope['section_id'])
        rows = query.all()

        passed = sum(1 for result, _ in rows if result.percentage >= self.pass_percentage)
        distinctions = sum(1 for result, _ in rows if result.percentage >= self.distinction_percentage)

        per_subject = defaultdict(lambda: [0.0, 0.0])
        for result, exam in rows:
            if exam.subject is None:
                continue
            per_subject[exam.subject.name][0] += result.marks_obtained
            per_subject[exam.subject.name][1] += result.total_marks

        subject_wise = [
            {'subject': subject, 'average': _percent(obtained, total)}
            for subject, (obtained, total) in per_subject.items()
        ]
        subject_wise.sort(key=lambda item: (-item['average'], item['subject']))

        return {
            'total_students': self._student_count(scope),
            'pass_percentage': _percent(passed, len(rows)),
            'distinction_percentage': _percent(distinctions, len(rows)),
            'subject_wise_performance': subject_wise,
            'records': subject_wise
        }

    def get_report_data(self, report_type, options):
        """Assemble the totals, breakdowns and records of a report type"""
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"Report type must be one of: {', '.join(REPORT_TYPES)}")

        scope = self._scope(options or {})
        builders = {
            'attendance': self._attendance_data,
            'performance': self._performance_data,
            'financial': self._financial_data,
            'exam': self._exam_data,
        }
        data = builders[report_type](scope)
        data.update({'month': scope['month'], 'year': scope['year']})
        return data

    # ------------------------------------------------------------- rendering

    @staticmethod
    def _summary(report_type, data):
        if report_type == 'attendance':
            return [
                ('Total Students', data['total_students']),
                ('Average Attendance', f"{data['average_attendance']}%"),
                ('Days in Month', data['days_in_month']),
                ('Working Days', data['working_days'])
            ]
        if report_type == 'performance':
            return [
                ('Total Teachers', data['total_teachers']),
                ('Total Feedbacks', data['total_feedbacks'])
            ]
        if report_type == 'financial':
            return [
                ('Total Revenue', f"{data['total_revenue']:.2f}"),
                ('Total Expenses', f"{data['total_expenses']:.2f}"),
                ('Balance', f"{data['balance']:.2f}")
            ]
        return [
            ('Total Students', data['total_students']),
            ('Pass Percentage', f"{data['pass_percentage']}%"),
            ('Distinction', f"{data['distinction_percentage']}%")
        ]

    def _render(self, report_type, fmt, title, generated_at, data):
        headers, keys, percent_columns = REPORT_LAYOUTS[report_type]
        rows = [[record.get(key) for key in keys] for record in data['records']]

        if fmt == 'csv':
            return CsvExportService.export_report(headers, rows)

        summary = self._summary(report_type, data)
        if fmt == 'excel':
            return ExcelExportService.export_report(
                title, generated_at, summary, headers, rows,
                percent_columns=percent_columns, sheet_title=f"{report_type.capitalize()} Report"
            )

        headings = {
            'attendance': 'Class-wise Attendance',
            'performance': 'Top Teachers by Feedback',
            'financial': 'Revenue by Category',
            'exam': 'Subject-wise Performance',
        }
        if report_type == 'performance':
            rows = rows[:5]
        return PdfExportService.export_report(title, generated_at, summary, headers, rows,
                                              records_heading=headings[report_type])

    def _write_atomically(self, directory, file_name, content):
        """Write into a temporary sibling and rename it into place"""
        os.makedirs(directory, exist_ok=True)
        final_path = os.path.join(directory, file_name)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'wb') as handle:
                handle.write(content)
            os.replace(tmp_path, final_path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        return final_path

    def generate_report(self, report_type, options, fmt, user_id):
        """Generate a report file and record it; returns the report metadata"""
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"Report type must be one of: {', '.join(REPORT_TYPES)}")
        if fmt not in REPORT_FORMATS:
            raise ValidationError(f"Report format must be one of: {', '.join(REPORT_FORMATS)}")
        if user_id is None:
            raise ValidationError("A user is required to generate reports")

        options = options or {}
        data = self.get_report_data(report_type, options)

        raw_title = options.get('title')
        if raw_title is not None and not isinstance(raw_title, str):
            raise ValidationError("Report title must be text")

        generated_at = datetime.utcnow()
        title = (raw_title or '').strip() or \
            f"{report_type.capitalize()} Report {calendar.month_name[data['month']]} {data['year']}"
        base_name = secure_filename(title) or f"{report_type}_report"
        file_name = f"{base_name}_{generated_at.strftime('%Y%m%d_%H%M%S_%f')}.{FILE_EXTENSIONS[fmt]}"

        content = self._render(report_type, fmt, title, generated_at, data)
        file_path = self._write_atomically(os.path.join(self.reports_dir, report_type), file_name, content)

        report = Report(
            title=title,
            type=report_type,
            format=fmt,
            file_path=file_path,
            file_name=file_name,
            download_url=f"/reports/{report_type}/{file_name}",
            user_id=user_id,
            created_at=generated_at
        )
        self.session.add(report)
        try:
            commit_or_rollback(self.session)
        except Exception:
            os.remove(file_path)
            raise

        logger.info("Generated %s %s report %s for user %s", fmt, report_type, file_name, user_id)
        return report.to_dict()

    # ---------------------------------------------------------------- access

    def get_report(self, report_id):
        return get_or_404(self.session, Report, report_id, 'Report')

    def get_download(self, report_id):
        """Return (file_path, file_name) of a generated report"""
        report = self.get_report(report_id)
        if not os.path.isfile(report.file_path):
            raise NotFoundError(f"Report file {report.file_name} is no longer available")
        return report.file_path, report.file_name

    def find_by_file(self, report_type, file_name):
        report = self.session.query(Report).filter_by(type=report_type, file_name=file_name).first()
        if report is None:
            raise NotFoundError(f"Report {file_name} not found")
        return report

    def list_recent(self, user_id, limit=None):
        """Newest reports generated by a user"""
        limit = limit or self.recent_limit
        reports = self.session.query(Report).filter_by(user_id=user_id).order_by(
            Report.created_at.desc(), Report.id.desc()
        ).limit(limit).all()
        return [report.to_dict() for report in reports]
