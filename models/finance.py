"""
Finance and feedback models for the School ERP backend
Sources of the financial and performance reports
"""

from database import db
from datetime import datetime, date

class FinancialTransaction(db.Model):
    """Income or expense entry"""
    __tablename__ = 'financial_transaction'

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(10), nullable=False)  # 'INCOME' or 'EXPENSE'
    category = db.Column(db.String(50), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    description = db.Column(db.String(200), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f'<FinancialTransaction {self.type} {self.category}: {self.amount}>'

class Feedback(db.Model):
    """Feedback left about a teacher"""
    __tablename__ = 'feedback'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=True)
    comment = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f'<Feedback teacher={self.teacher_id}>'
