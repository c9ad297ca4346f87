"""
Report routes for the School ERP backend
"""

from flask import Blueprint, current_app, g, request, send_file

from database import db
from routes.auth import api_response, login_required
from services.report_service import ReportService
from utils.errors import AuthorizationError, ValidationError
from utils.validators import REPORT_TYPES, parse_int

reports_bp = Blueprint('reports', __name__)
report_files_bp = Blueprint('report_files', __name__)

REPORT_ROLES = {
    'attendance': ('ADMIN', 'TEACHER'),
    'exam': ('ADMIN', 'TEACHER'),
    'performance': ('ADMIN',),
    'financial': ('ADMIN',),
}

def _service():
    config = current_app.config
    return ReportService(
        db.session,
        config['REPORTS_DIR'],
        recent_limit=config['RECENT_REPORTS_LIMIT'],
        pass_percentage=config['PASS_PERCENTAGE'],
        distinction_percentage=config['DISTINCTION_PERCENTAGE'],
        weekend_days=config['WEEKEND_DAYS']
    )

def _check_report_role(report_type):
    if report_type not in REPORT_TYPES:
        raise ValidationError(f"Report type must be one of: {', '.join(REPORT_TYPES)}")
    if g.current_role not in REPORT_ROLES[report_type]:
        raise AuthorizationError(f"You are not allowed to generate {report_type} reports")

def _check_report_owner(report):
    if g.current_role != 'ADMIN' and report.user_id != g.current_user.id:
        raise AuthorizationError("You can only download your own reports")

@reports_bp.route('/<report_type>', methods=['POST'])
@login_required()
def generate_report(report_type):
    """Generate a report file in the requested format (pdf, excel or csv)"""
    _check_report_role(report_type)
    data = request.get_json(silent=True) or {}
    report = _service().generate_report(
        report_type,
        data,
        str(data.get('format') or 'pdf').lower(),
        g.current_user.id
    )
    return api_response(report, 'Report generated successfully', 201)

@reports_bp.route('/data/<report_type>')
@login_required()
def get_report_data(report_type):
    _check_report_role(report_type)
    return api_response(_service().get_report_data(report_type, request.args.to_dict()))

@reports_bp.route('/recent')
@login_required()
def recent_reports():
    limit = parse_int(request.args.get('limit'), 'limit', required=False)
    return api_response(_service().list_recent(g.current_user.id, limit=limit))

@reports_bp.route('/download/<int:report_id>')
@login_required()
def download_report(report_id):
    service = _service()
    _check_report_owner(service.get_report(report_id))
    file_path, file_name = service.get_download(report_id)
    return send_file(file_path, as_attachment=True, download_name=file_name)

@report_files_bp.route('/<report_type>/<file_name>')
@login_required()
def report_file(report_type, file_name):
    """Serve a report through its stored download URL"""
    service = _service()
    report = service.find_by_file(report_type, file_name)
    _check_report_owner(report)
    file_path, name = service.get_download(report.id)
    return send_file(file_path, as_attachment=True, download_name=name)
