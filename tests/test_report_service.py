"""
Unit tests for report assembly and file generation
"""

import csv
import os
import shutil
import tempfile
import unittest
from datetime import date, datetime

import openpyxl

from app import create_app
from config import TestingConfig
from database import db
from models.exam import Exam, ExamResult
from models.finance import Feedback, FinancialTransaction
from models.report import Report
from services.attendance_service import AttendanceService
from services.report_service import ReportService
from utils.errors import NotFoundError, ValidationError
from factories import build_school

MARCH = {'month': 3, 'year': 2024}

class TestReportService(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.school = build_school()
        self.reports_dir = tempfile.mkdtemp(prefix='school_erp_reports_')
        self.service = ReportService(db.session, self.reports_dir)

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()
        shutil.rmtree(self.reports_dir, ignore_errors=True)

    def _files(self):
        found = []
        for root, _, files in os.walk(self.reports_dir):
            found.extend(os.path.join(root, name) for name in files)
        return found

    def _mark_attendance(self):
        AttendanceService(db.session).mark_daily(
            self.school.school_class.id, self.school.section.id, date(2024, 3, 4),
            [{'student_id': self.school.students[0].id, 'status': 'PRESENT'},
             {'student_id': self.school.students[1].id, 'status': 'ABSENT'}]
        )

    def test_attendance_data_without_records(self):
        data = self.service.get_report_data('attendance', MARCH)

        self.assertEqual(data['average_attendance'], 0)
        self.assertEqual(data['classwise_data'], [])
        self.assertEqual(data['records'], [])
        self.assertEqual(data['total_students'], 4)
        self.assertEqual(data['days_in_month'], 31)
        self.assertEqual(data['working_days'], 21)

    def test_attendance_data(self):
        self._mark_attendance()

        data = self.service.get_report_data('attendance', dict(MARCH, class_id=self.school.school_class.id,
                                                               section_id=self.school.section.id))

        self.assertEqual(data['total_students'], 2)
        self.assertEqual(data['average_attendance'], 50.0)
        self.assertEqual(data['classwise_data'], [{'class': 'Class 8', 'attendance': 50.0}])

    def test_performance_data(self):
        for _ in range(3):
            db.session.add(Feedback(teacher_id=self.school.class_teacher.id, comment='Great',
                                    created_at=datetime(2024, 3, 10, 9, 0)))
        db.session.add(Feedback(teacher_id=self.school.subject_teacher.id, created_at=datetime(2024, 3, 12)))
        db.session.add(Feedback(teacher_id=self.school.subject_teacher.id, created_at=datetime(2024, 4, 2)))
        db.session.commit()

        data = self.service.get_report_data('performance', MARCH)

        self.assertEqual(data['total_teachers'], 2)
        self.assertEqual(data['total_feedbacks'], 4)
        self.assertEqual(data['top_teachers'][0], {'name': 'Asha Rao', 'count': 3})
        self.assertEqual(data['records'], data['top_teachers'])

    def test_financial_data(self):
        db.session.add_all([
            FinancialTransaction(type='INCOME', category='Tuition', amount=1000, date=date(2024, 3, 5)),
            FinancialTransaction(type='INCOME', category='Transport', amount=500, date=date(2024, 3, 6)),
            FinancialTransaction(type='EXPENSE', category='Salaries', amount=300, date=date(2024, 3, 7)),
            FinancialTransaction(type='INCOME', category='Tuition', amount=999, date=date(2024, 2, 28)),
        ])
        db.session.commit()

        data = self.service.get_report_data('financial', MARCH)

        self.assertEqual(data['total_revenue'], 1500.0)
        self.assertEqual(data['total_expenses'], 300.0)
        self.assertEqual(data['balance'], 1200.0)
        self.assertEqual(data['categories'], [
            {'category': 'Tuition', 'amount': 1000.0},
            {'category': 'Transport', 'amount': 500.0},
        ])

    def test_exam_data(self):
        maths = Exam(name='Unit Test 1', subject_id=self.school.maths.id, class_id=self.school.school_class.id,
                     section_id=self.school.section.id, date=date(2024, 3, 8), total_marks=100)
        science = Exam(name='Unit Test 1', subject_id=self.school.science.id, class_id=self.school.school_class.id,
                       section_id=self.school.section.id, date=date(2024, 3, 9), total_marks=50)
        db.session.add_all([maths, science])
        db.session.flush()
        first, second = self.school.students
        db.session.add_all([
            ExamResult(exam_id=maths.id, student_id=first.id, marks_obtained=80, total_marks=100),
            ExamResult(exam_id=maths.id, student_id=second.id, marks_obtained=30, total_marks=100),
            ExamResult(exam_id=science.id, student_id=first.id, marks_obtained=45, total_marks=50),
            ExamResult(exam_id=science.id, student_id=second.id, marks_obtained=25, total_marks=50),
        ])
        db.session.commit()

        data = self.service.get_report_data('exam', MARCH)

        self.assertEqual(data['pass_percentage'], 75.0)
        self.assertEqual(data['distinction_percentage'], 50.0)
        self.assertEqual(data['subject_wise_performance'], [
            {'subject': 'Science', 'average': 70.0},
            {'subject': 'Mathematics', 'average': 55.0},
        ])

    def test_exam_data_without_results(self):
        data = self.service.get_report_data('exam', MARCH)
        self.assertEqual(data['pass_percentage'], 0)
        self.assertEqual(data['records'], [])

    def test_report_data_requires_month_and_year(self):
        with self.assertRaises(ValidationError):
            self.service.get_report_data('attendance', {'year': 2024})
        with self.assertRaises(ValidationError):
            self.service.get_report_data('timetable', MARCH)

    def test_csv_has_one_row_per_record(self):
        self._mark_attendance()
        AttendanceService(db.session).mark_daily(
            self.school.school_class.id, self.school.section_b.id, date(2024, 3, 4),
            [{'student_id': self.school.students_b[0].id, 'status': 'PRESENT'}]
        )

        report = self.service.generate_report('attendance', MARCH, 'csv', self.school.admin_user.id)
        file_path, file_name = self.service.get_download(int(report['id']))

        with open(file_path, newline='', encoding='utf-8') as handle:
            rows = list(csv.reader(handle))
        data = self.service.get_report_data('attendance', MARCH)
        self.assertEqual(rows[0], ['Class', 'Attendance Percentage'])
        self.assertEqual(len(rows) - 1, len(data['records']))
        self.assertTrue(file_name.endswith('.csv'))

    def test_generate_excel_report(self):
        report = self.service.generate_report('attendance', MARCH, 'excel', self.school.admin_user.id)
        file_path, _ = self.service.get_download(int(report['id']))

        workbook = openpyxl.load_workbook(file_path)
        sheet = workbook.active
        self.assertEqual(sheet['A1'].value, report['title'])
        self.assertEqual(sheet['A4'].value, 'Total Students')

    def test_generate_pdf_report(self):
        report = self.service.generate_report('exam', dict(MARCH, title='Exam Summary'), 'pdf',
                                              self.school.admin_user.id)
        file_path, file_name = self.service.get_download(int(report['id']))

        with open(file_path, 'rb') as handle:
            self.assertEqual(handle.read(5), b'%PDF-')
        self.assertTrue(file_name.startswith('Exam_Summary_'))
        self.assertEqual(report['download_url'], f'/reports/exam/{file_name}')
        self.assertEqual(os.path.dirname(file_path), os.path.join(self.reports_dir, 'exam'))
        self.assertNotIn('file_path', report)

    def test_unknown_class_writes_nothing(self):
        with self.assertRaises(NotFoundError):
            self.service.generate_report('attendance', dict(MARCH, class_id=999), 'pdf',
                                         self.school.admin_user.id)

        self.assertEqual(self._files(), [])
        self.assertEqual(db.session.query(Report).count(), 0)

    def test_invalid_format(self):
        with self.assertRaises(ValidationError):
            self.service.generate_report('attendance', MARCH, 'docx', self.school.admin_user.id)

    def test_title_must_be_text(self):
        for title in (42, ['March'], {'text': 'March'}):
            with self.assertRaises(ValidationError):
                self.service.generate_report('attendance', dict(MARCH, title=title), 'csv',
                                             self.school.admin_user.id)
        self.assertEqual(self._files(), [])
        self.assertEqual(db.session.query(Report).count(), 0)

    def test_list_recent(self):
        service = ReportService(db.session, self.reports_dir, recent_limit=2)
        for _ in range(3):
            service.generate_report('financial', MARCH, 'csv', self.school.admin_user.id)

        recent = service.list_recent(self.school.admin_user.id)
        self.assertEqual(len(recent), 2)
        self.assertEqual(recent[0]['id'], '3')
        self.assertEqual(service.list_recent(self.school.teacher_user.id), [])
        self.assertEqual(len(service.list_recent(self.school.admin_user.id, limit=5)), 3)

    def test_missing_file_is_not_found(self):
        report = self.service.generate_report('financial', MARCH, 'csv', self.school.admin_user.id)
        file_path, _ = self.service.get_download(int(report['id']))
        os.remove(file_path)

        with self.assertRaises(NotFoundError):
            self.service.get_download(int(report['id']))
        with self.assertRaises(NotFoundError):
            self.service.get_report(999)

if __name__ == '__main__':
    unittest.main()
