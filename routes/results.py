"""
Result routes for the School ERP backend
"""

from flask import Blueprint, current_app, g, request

from database import db
from routes.auth import api_response, login_required
from services.result_service import ResultService
from utils.errors import AuthorizationError, ValidationError
from utils.validators import parse_int, require_fields

results_bp = Blueprint('results', __name__)

def _service():
    config = current_app.config
    return ResultService(
        db.session,
        pass_percentage=config['PASS_PERCENTAGE'],
        improvement_threshold=config['IMPROVEMENT_THRESHOLD'],
        lock_on_create=config['LOCK_RESULTS_ON_CREATE']
    )

@results_bp.route('/subject', methods=['POST'])
@login_required('TEACHER', 'ADMIN')
def add_subject_result():
    data = request.get_json(silent=True) or {}
    require_fields(data, 'student_id', 'subject_id', 'academic_year', 'term', 'full_marks', 'pass_marks')

    result = _service().add_subject_result(
        parse_int(data.get('student_id'), 'student_id'),
        parse_int(data.get('subject_id'), 'subject_id'),
        str(data.get('academic_year')),
        str(data.get('term')),
        data.get('full_marks'),
        data.get('pass_marks'),
        theory_marks=data.get('theory_marks'),
        practical_marks=data.get('practical_marks'),
        is_absent=data.get('is_absent', False)
    )
    return api_response(result, 'Subject result added successfully', 201)

@results_bp.route('/subject/<int:result_id>', methods=['PUT'])
@login_required('TEACHER', 'ADMIN')
def update_subject_result(result_id):
    data = request.get_json(silent=True) or {}
    result = _service().update_subject_result(result_id, data)
    return api_response(result, 'Subject result updated successfully')

@results_bp.route('/subject/<int:result_id>/lock', methods=['PATCH'])
@login_required('ADMIN')
def set_subject_result_lock(result_id):
    data = request.get_json(silent=True) or {}
    require_fields(data, 'is_locked')
    result = _service().set_lock(result_id, data['is_locked'])
    state = 'locked' if result['is_locked'] else 'unlocked'
    return api_response(result, f'Subject result {state} successfully')

@results_bp.route('/subject', methods=['GET'])
@login_required()
def get_subject_results():
    """Results of one student, or of a class/section in one subject"""
    args = request.args
    if args.get('student_id'):
        results = _service().get_subject_results(
            parse_int(args.get('student_id'), 'student_id'),
            academic_year=args.get('academic_year'),
            term=args.get('term')
        )
        return api_response(results)

    if not all(args.get(field) for field in ('class_id', 'section_id', 'subject_id', 'academic_year', 'term')):
        raise ValidationError("Provide student_id, or class_id, section_id and subject_id "
                              "together with academic_year and term")
    if g.current_role not in ('ADMIN', 'TEACHER'):
        raise AuthorizationError("Only staff can list results for a whole class")

    results = _service().get_class_subject_results(
        parse_int(args.get('class_id'), 'class_id'),
        parse_int(args.get('section_id'), 'section_id'),
        parse_int(args.get('subject_id'), 'subject_id'),
        args.get('academic_year'),
        args.get('term')
    )
    return api_response(results)

@results_bp.route('/overall', methods=['GET'])
@login_required()
def get_overall_result():
    require_fields(request.args, 'student_id', 'academic_year', 'term')
    result = _service().get_overall_result(
        parse_int(request.args.get('student_id'), 'student_id'),
        request.args.get('academic_year'),
        request.args.get('term')
    )
    return api_response(result)

@results_bp.route('/overall/calculate', methods=['POST'])
@login_required('TEACHER', 'ADMIN')
def calculate_overall_result():
    data = request.get_json(silent=True) or {}
    require_fields(data, 'student_id', 'academic_year', 'term')
    result = _service().calculate_overall_result(
        parse_int(data.get('student_id'), 'student_id'),
        str(data.get('academic_year')),
        str(data.get('term'))
    )
    return api_response(result, 'Overall result calculated successfully')

@results_bp.route('/recalculate', methods=['POST'])
@login_required('ADMIN')
def recalculate_class_results():
    """Recalculate overall results of a whole class/section"""
    data = request.get_json(silent=True) or {}
    require_fields(data, 'class_id', 'section_id', 'academic_year', 'term')
    summary = _service().recalculate_class_results(
        parse_int(data.get('class_id'), 'class_id'),
        parse_int(data.get('section_id'), 'section_id'),
        str(data.get('academic_year')),
        str(data.get('term'))
    )
    return api_response(summary, f"Updated {summary['updated']} result(s), {summary['failed']} failed")
