"""
Holiday routes for the School ERP backend
"""

from flask import Blueprint, current_app, request

from database import db
from routes.auth import api_response, login_required
from services.holiday_service import HolidayService, month_bounds
from utils.errors import ValidationError
from utils.validators import parse_date, parse_int, parse_month_year

holidays_bp = Blueprint('holidays', __name__)

def _service():
    return HolidayService(db.session, weekend_days=current_app.config['WEEKEND_DAYS'])

@holidays_bp.route('', methods=['GET'])
@login_required()
def list_holidays():
    """Holidays in a date range (start/end) or a month (month/year)"""
    args = request.args
    start = end = None
    if args.get('month') or args.get('year'):
        start, end = month_bounds(*parse_month_year(args.get('month'), args.get('year')))
    elif args.get('start') or args.get('end'):
        start = parse_date(args.get('start'), 'start')
        end = parse_date(args.get('end'), 'end')

    holidays = _service().list_holidays(
        start=start,
        end=end,
        holiday_type_id=parse_int(args.get('holiday_type_id'), 'holiday_type_id', required=False)
    )
    return api_response([holiday.to_dict() for holiday in holidays])

@holidays_bp.route('', methods=['POST'])
@login_required('ADMIN')
def add_holiday():
    data = request.get_json(silent=True) or {}
    holiday = _service().add_holiday(data)
    return api_response(holiday.to_dict(), 'Holiday added successfully', 201)

@holidays_bp.route('/<int:holiday_id>', methods=['PUT'])
@login_required('ADMIN')
def update_holiday(holiday_id):
    data = request.get_json(silent=True) or {}
    holiday = _service().update_holiday(holiday_id, data)
    return api_response(holiday.to_dict(), 'Holiday updated successfully')

@holidays_bp.route('/<int:holiday_id>', methods=['DELETE'])
@login_required('ADMIN')
def delete_holiday(holiday_id):
    _service().delete_holiday(holiday_id)
    return api_response(message='Holiday deleted successfully')

@holidays_bp.route('/working-days')
@login_required()
def working_days():
    month, year = parse_month_year(request.args.get('month'), request.args.get('year'))
    days = _service().working_days(month, year)
    return api_response({
        'month': month,
        'year': year,
        'count': len(days),
        'working_days': [day.isoformat() for day in days]
    })

@holidays_bp.route('/upcoming')
@login_required()
def upcoming_holidays():
    """Next holidays from today (or ``from``), recurring ones included"""
    from_day = parse_date(request.args['from'], 'from') if request.args.get('from') else None
    limit = parse_int(request.args.get('limit'), 'limit', required=False) or 5
    if limit < 1:
        raise ValidationError("limit must be a positive number")
    return api_response(_service().upcoming_holidays(from_day=from_day, limit=limit))

@holidays_bp.route('/<int:holiday_id>', methods=['GET'])
@login_required()
def get_holiday(holiday_id):
    return api_response(_service().get_holiday(holiday_id).to_dict())

@holidays_bp.route('/types', methods=['GET'])
@login_required()
def list_holiday_types():
    return api_response([holiday_type.to_dict() for holiday_type in _service().list_holiday_types()])

@holidays_bp.route('/types', methods=['POST'])
@login_required('ADMIN')
def add_holiday_type():
    data = request.get_json(silent=True) or {}
    holiday_type = _service().add_holiday_type(data.get('name'))
    return api_response(holiday_type.to_dict(), 'Holiday type added successfully', 201)
