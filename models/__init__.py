"""
Database models package for the School ERP backend
"""

from .user import User, Teacher, Parent
from .academic import SchoolClass, Section, Subject, ClassSubject
from .assignments import ClassTeacherAssignment, TeacherClass, TeacherSection
from .student import Student
from .attendance import DailyAttendance, MonthlyAttendance
from .results import GradeDefinition, SubjectResult, OverallResult
from .holiday import HolidayType, Holiday
from .report import Report
from .exam import Exam, ExamResult
from .finance import FinancialTransaction, Feedback

__all__ = [
    'User', 'Teacher', 'Parent', 'SchoolClass', 'Section', 'Subject',
    'ClassSubject', 'ClassTeacherAssignment', 'TeacherClass', 'TeacherSection',
    'Student', 'DailyAttendance', 'MonthlyAttendance', 'GradeDefinition',
    'SubjectResult', 'OverallResult', 'HolidayType', 'Holiday', 'Report',
    'Exam', 'ExamResult', 'FinancialTransaction', 'Feedback'
]
