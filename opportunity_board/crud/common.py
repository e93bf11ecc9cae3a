"""Constraint-backed writes shared by the engagement and relationship services."""

from typing import Sequence

from sqlalchemy.orm import Session


def insert_ignore(db: Session, model, *, conflict_columns: Sequence[str], **values) -> bool:
    """
    Insert a row keyed by a unique constraint, treating a conflict as success.

    Returns True when this call created the row, False when it already existed.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    else:
        exists = db.query(model.id).filter_by(**values).first()
        if exists:
            return False
        db.add(model(**values))
        db.flush()
        return True

    stmt = (
        dialect_insert(model)
        .values(**values)
        .on_conflict_do_nothing(index_elements=list(conflict_columns))
    )
    result = db.execute(stmt)
    return result.rowcount == 1
