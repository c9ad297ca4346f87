"""
Database configuration and initialization for the School ERP backend
"""

import logging
import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

# Initialize SQLAlchemy instance
db = SQLAlchemy()

@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def init_db(app):
    """Initialize database with application context"""
    with app.app_context():
        # Import all models to ensure they are registered
        import models  # noqa: F401

        db.create_all()
        create_default_grade_definitions()
        logger.info("Database initialized")

def create_default_grade_definitions():
    """Seed the standard grade bands when the table is empty"""
    from models.results import GradeDefinition, DEFAULT_GRADE_BANDS

    if db.session.query(GradeDefinition).count() > 0:
        return 0

    for grade, min_score, max_score, description in DEFAULT_GRADE_BANDS:
        db.session.add(GradeDefinition(
            grade=grade,
            min_score=min_score,
            max_score=max_score,
            description=description
        ))

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    logger.info("Seeded %d grade definitions", len(DEFAULT_GRADE_BANDS))
    return len(DEFAULT_GRADE_BANDS)

def reset_database(app):
    """Reset database - WARNING: This will delete all data"""
    with app.app_context():
        import models  # noqa: F401

        db.drop_all()
        db.create_all()
        create_default_grade_definitions()
        logger.warning("Database reset completed")

class DatabaseError(Exception):
    """Custom exception for database operations"""
    pass
