"""
Attendance routes for the School ERP backend
"""

from flask import Blueprint, current_app, g, request

from database import db
from models.student import Student
from routes.auth import api_response, current_teacher, login_required
from services.attendance_service import AttendanceService
from utils.db_helpers import get_or_404
from utils.errors import AuthorizationError
from utils.validators import parse_date, parse_int, require_fields

attendance_bp = Blueprint('attendance', __name__)

def _service():
    return AttendanceService(db.session, weekend_days=current_app.config['WEEKEND_DAYS'])

def _check_class_access(service, class_id, section_id, allow_family=False):
    """Raise AuthorizationError unless the current user may see this class/section"""
    role = g.current_role
    user = g.current_user
    if role == 'ADMIN':
        return
    if role == 'TEACHER':
        if service.is_teacher_authorized(current_teacher().id, class_id, section_id):
            return
    elif allow_family and role == 'STUDENT':
        if user.student is not None and user.student.belongs_to(class_id, section_id):
            return
    elif allow_family and role == 'PARENT':
        if user.parent is not None and user.parent.children.filter_by(
                class_id=class_id, section_id=section_id, is_active=True).first():
            return
    raise AuthorizationError("You are not authorized to access attendance for this class/section")

@attendance_bp.route('/daily', methods=['POST'])
@login_required('ADMIN', 'TEACHER')
def mark_daily_attendance():
    """Mark attendance for a class/section; teachers must be the class teacher"""
    data = request.get_json(silent=True) or {}
    require_fields(data, 'class_id', 'section_id', 'date', 'attendance')
    class_id = parse_int(data.get('class_id'), 'class_id')
    section_id = parse_int(data.get('section_id'), 'section_id')

    service = _service()
    marked_by_id = None
    if g.current_role == 'TEACHER':
        teacher = current_teacher()
        if not service.is_teacher_authorized(teacher.id, class_id, section_id, require_class_teacher=True):
            raise AuthorizationError("Only the class teacher can mark attendance for this class/section")
        marked_by_id = teacher.id

    result = service.mark_daily(
        class_id,
        section_id,
        data.get('date'),
        data.get('attendance'),
        remarks=data.get('remarks'),
        marked_by_id=marked_by_id
    )
    return api_response(result, f"Attendance marked for {len(result['applied'])} student(s)")

@attendance_bp.route('/daily', methods=['GET'])
@login_required()
def get_daily_attendance():
    class_id = parse_int(request.args.get('class_id'), 'class_id')
    section_id = parse_int(request.args.get('section_id'), 'section_id')
    attendance_date = parse_date(request.args.get('date'), 'date')

    service = _service()
    _check_class_access(service, class_id, section_id, allow_family=True)
    return api_response(service.get_daily(class_id, section_id, attendance_date))

@attendance_bp.route('/stats')
@login_required('ADMIN', 'TEACHER')
def get_attendance_stats():
    class_id = parse_int(request.args.get('class_id'), 'class_id')
    section_id = parse_int(request.args.get('section_id'), 'section_id')

    service = _service()
    _check_class_access(service, class_id, section_id)
    stats = service.get_stats(class_id, section_id, request.args.get('month'), request.args.get('year'))
    return api_response(stats)

@attendance_bp.route('/student/<int:student_id>')
@login_required()
def get_student_attendance(student_id):
    """Monthly attendance of one student; students see their own, parents their children"""
    student = get_or_404(db.session, Student, student_id, 'Student')
    role = g.current_role
    user = g.current_user
    if role == 'STUDENT' and (user.student is None or user.student.id != student.id):
        raise AuthorizationError("You can only view your own attendance")
    if role == 'PARENT' and (user.parent is None or student.parent_id != user.parent.id):
        raise AuthorizationError("You can only view your children's attendance")

    data = _service().get_student_attendance(student.id, request.args.get('month'), request.args.get('year'))
    return api_response(data)

@attendance_bp.route('/pending')
@login_required('TEACHER')
def get_pending_attendance_days():
    """Working days this month (so far) the class teacher has not marked"""
    month = parse_int(request.args.get('month'), 'month', required=False)
    year = parse_int(request.args.get('year'), 'year', required=False)
    data = _service().get_pending_days(current_teacher().id, month=month, year=year)
    return api_response(data)
