"""
Database helper utilities for the School ERP backend
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database import DatabaseError
from utils.errors import ConflictError, NotFoundError

_UPSERT_INSERTS = {
    'sqlite': sqlite_insert,
    'postgresql': pg_insert,
}

def commit_or_rollback(session, conflict_message="Duplicate entry found"):
    """Commit the session, rolling back and raising a typed error on failure"""
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(conflict_message) from e
    except SQLAlchemyError as e:
        session.rollback()
        raise DatabaseError(f"Database error: {str(e)}") from e

def upsert(session, model, keys, values):
    """Insert or update the row identified by the unique ``keys`` columns.

    Uses the dialect's ``INSERT ... ON CONFLICT DO UPDATE`` so that concurrent
    writers of the same key end up with a single row. Other dialects fall back
    to read-then-write. Returns the refreshed ORM instance.
    """
    values = dict(values)
    if hasattr(model, 'updated_at'):
        values['updated_at'] = datetime.utcnow()

    session.flush()
    insert_fn = _UPSERT_INSERTS.get(session.get_bind().dialect.name)

    if insert_fn is not None:
        stmt = insert_fn(model).values(**keys, **values)
        stmt = stmt.on_conflict_do_update(index_elements=list(keys), set_=values)
        session.execute(stmt)
    else:
        instance = session.query(model).filter_by(**keys).one_or_none()
        if instance is None:
            session.add(model(**keys, **values))
        else:
            for field, value in values.items():
                setattr(instance, field, value)
        session.flush()

    return session.execute(
        select(model).filter_by(**keys).execution_options(populate_existing=True)
    ).scalar_one()

def get_or_404(session, model, entity_id, label=None):
    """Fetch a row by primary key or raise NotFoundError"""
    instance = session.get(model, entity_id) if entity_id is not None else None
    if instance is None:
        raise NotFoundError(f"{label or model.__name__} with ID {entity_id} not found")
    return instance
