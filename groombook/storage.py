"""
Data-access adapter over a SQLAlchemy session.

Services talk to persistence only through this class: query, insert,
update and delete by model, plus an `atomic()` block that commits or
rolls back as a unit. SQLAlchemy errors never leak past it; they
arrive as StorageError (or ConstraintViolation for rejected writes).
"""
from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from groombook.errors import ConstraintViolation, NotFoundError, StorageError


class Storage:
    """Thin repository wrapper around a database session"""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def reading(self):
        """Translate driver failures on read paths"""
        try:
            yield self.db
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Storage read failed: {e}") from e

    @contextmanager
    def atomic(self):
        """Commit everything written inside the block, or nothing"""
        try:
            yield self
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConstraintViolation(f"Constraint violated: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Storage write failed: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    def query(self, model, *criteria, order_by=None, **filters) -> list:
        """Return all rows of `model` matching keyword equality filters and criteria"""
        with self.reading():
            q = self.db.query(model)
            if filters:
                q = q.filter_by(**filters)
            if criteria:
                q = q.filter(*criteria)
            if order_by is not None:
                q = q.order_by(*order_by) if isinstance(order_by, (list, tuple)) else q.order_by(order_by)
            return q.all()

    def first(self, model, *criteria, **filters):
        rows = self.query(model, *criteria, **filters)
        return rows[0] if rows else None

    def get(self, model, record_id):
        with self.reading():
            return self.db.get(model, record_id)

    def insert(self, model, values: dict):
        record = model(**values)
        self.db.add(record)
        self.db.flush()
        return record

    def update(self, model, record_id, patch: dict):
        record = self.get(model, record_id)
        if record is None:
            raise NotFoundError(f"{model.__name__} {record_id} not found")
        for key, value in patch.items():
            setattr(record, key, value)
        self.db.flush()
        return record

    def delete(self, model, record_id) -> None:
        record = self.get(model, record_id)
        if record is None:
            raise NotFoundError(f"{model.__name__} {record_id} not found")
        self.db.delete(record)
        self.db.flush()
