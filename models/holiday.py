"""
Holiday models for the School ERP backend
"""

from database import db
from datetime import datetime

class HolidayType(db.Model):
    """Category of holiday, e.g. 'National', 'Festival'"""
    __tablename__ = 'holiday_type'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)

    holidays = db.relationship('Holiday', backref='holiday_type', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'holiday_count': self.holidays.count()
        }

    def __repr__(self):
        return f'<HolidayType {self.name}>'

class Holiday(db.Model):
    """Holiday covering the inclusive range from_date..to_date.

    Single-day holidays use from_date == to_date. Recurring holidays carry a
    recurrence_pattern understood by HolidayService.expand_recurrence.
    """
    __tablename__ = 'holiday'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=True)
    from_date = db.Column(db.Date, nullable=False, index=True)
    to_date = db.Column(db.Date, nullable=False, index=True)
    holiday_type_id = db.Column(db.Integer, db.ForeignKey('holiday_type.id'), nullable=True)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    recurrence_pattern = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def covers(self, day):
        return self.from_date <= day <= self.to_date

    def to_dict(self):
        """Convert holiday to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'from_date': self.from_date.isoformat() if self.from_date else None,
            'to_date': self.to_date.isoformat() if self.to_date else None,
            'holiday_type_id': self.holiday_type_id,
            'holiday_type': self.holiday_type.name if self.holiday_type else None,
            'is_recurring': self.is_recurring,
            'recurrence_pattern': self.recurrence_pattern
        }

    def __repr__(self):
        return f'<Holiday {self.name}: {self.from_date} - {self.to_date}>'
