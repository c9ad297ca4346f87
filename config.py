"""
Configuration settings for the School ERP backend
"""

import os
import tempfile
from datetime import timedelta

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    """Base configuration class"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'school-erp-secret-key'
    JSON_SORT_KEYS = False

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///school_erp.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session settings
    PERMANENT_SESSION_LIFETIME = timedelta(hours=2)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'

    # Report generation
    REPORTS_DIR = os.environ.get('REPORTS_DIR') or os.path.join(BASE_DIR, 'reports')
    RECENT_REPORTS_LIMIT = 10

    # Academic rules
    WEEKEND_DAYS = (5, 6)  # date.weekday(): Saturday, Sunday
    PASS_PERCENTAGE = 40
    DISTINCTION_PERCENTAGE = 75
    IMPROVEMENT_THRESHOLD = 50  # subjects below this are flagged for improvement
    LOCK_RESULTS_ON_CREATE = True

class TestingConfig(Config):
    """Configuration used by the test suite"""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    REPORTS_DIR = os.path.join(tempfile.gettempdir(), 'school_erp_test_reports')
    LOG_LEVEL = 'WARNING'
