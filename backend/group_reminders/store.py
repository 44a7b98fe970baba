"""Row-level access to the group tables.

Every call opens its own session and commits before returning, so a
sequence of calls is ordered but never atomic as a unit. Callers that need
multi-row effects (group + admin membership, batch member inserts) issue
independent calls and handle partial failure themselves.

Three rules live here rather than in any client:
- one membership per (group, account), via the table's unique constraint
- a group reminder is created only by a member of its group
- a non-empty group keeps at least one admin; removing the last membership
  dissolves the group together with its reminders
"""
import logging
from collections.abc import Iterable
from typing import Any, Callable, Optional

from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from group_reminders.models.group import Group, GroupReminder, GroupRole, Membership
from group_reminders.models.profile import Profile

logger = logging.getLogger(__name__)

TABLES = {
    "groups": Group,
    "memberships": Membership,
    "group_reminders": GroupReminder,
    "profiles": Profile,
}

# Ordering applied when a select names none.
DEFAULT_ORDERING = {
    "group_reminders": ("time", True),
}


class StoreError(Exception):
    """A store call was rejected or could not be completed."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class DuplicateRowError(StoreError):
    """An insert collided with a uniqueness constraint."""


class AdminRetentionError(StoreError):
    """A delete would leave a group with members but no admin."""


class MembershipRequiredError(StoreError):
    """The acting account is not a member of the group it writes to."""


def _row(obj: Any) -> dict[str, Any]:
    """Serialize a mapped instance, including column properties, to a dict."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def _model(table: str):
    try:
        return TABLES[table]
    except KeyError:
        raise StoreError(f"Unknown table: {table}") from None


def _where(model, filters: dict[str, Any]) -> list:
    clauses = []
    for column, value in filters.items():
        attr = getattr(model, column)
        if isinstance(value, (list, tuple, set, frozenset)):
            clauses.append(attr.in_(list(value)))
        else:
            clauses.append(attr == value)
    return clauses


class RemoteStore:
    """Insert / select / delete against the group tables, one unit of work per call."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def insert(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored."""
        model = _model(table)
        with self._session_factory() as db:
            if model is GroupReminder:
                self._require_member(db, values.get("group_id"), values.get("created_by"))
            obj = model(**values)
            db.add(obj)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                if "unique" in str(exc.orig).lower():
                    raise DuplicateRowError(f"Duplicate {table} row") from exc
                raise StoreError(f"Constraint violated on {table}: {exc.orig}") from exc
            except SQLAlchemyError as exc:
                db.rollback()
                raise StoreError(f"Insert into {table} failed: {exc}") from exc
            db.refresh(obj)
            logger.debug("Inserted %s row %s", table, getattr(obj, "id", None))
            return _row(obj)

    def select(
        self,
        table: str,
        *,
        columns: Optional[Iterable[str]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
        **filters: Any,
    ) -> list[dict[str, Any]]:
        """Select rows matching equality (or set-membership) filters."""
        model = _model(table)
        if order_by is None and table in DEFAULT_ORDERING:
            order_by, ascending = DEFAULT_ORDERING[table]
        query = select(model).where(*_where(model, filters))
        if order_by is not None:
            column = getattr(model, order_by)
            query = query.order_by(column.asc() if ascending else column.desc())
        if limit is not None:
            query = query.limit(limit)
        try:
            with self._session_factory() as db:
                rows = [_row(obj) for obj in db.scalars(query).all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"Select from {table} failed: {exc}") from exc
        if columns is not None:
            keep = list(columns)
            rows = [{key: row[key] for key in keep} for row in rows]
        return rows

    def search(self, table: str, column: str, term: str, limit: Optional[int] = None) -> list[dict[str, Any]]:
        """Case-insensitive substring match on one column."""
        model = _model(table)
        query = select(model).where(getattr(model, column).ilike(f"%{term}%"))
        if limit is not None:
            query = query.limit(limit)
        try:
            with self._session_factory() as db:
                return [_row(obj) for obj in db.scalars(query).all()]
        except SQLAlchemyError as exc:
            raise StoreError(f"Search on {table}.{column} failed: {exc}") from exc

    def delete(self, table: str, **filters: Any) -> int:
        """Delete rows matching the filters; returns the number removed."""
        if not filters:
            raise StoreError(f"Refusing unfiltered delete on {table}")
        model = _model(table)
        with self._session_factory() as db:
            try:
                objs = db.scalars(select(model).where(*_where(model, filters))).all()
                group_ids = {obj.group_id for obj in objs} if model is Membership else set()
                for obj in objs:
                    db.delete(obj)
                db.flush()
                for group_id in group_ids:
                    self._enforce_admin_retained(db, group_id)
                db.commit()
            except StoreError:
                db.rollback()
                raise
            except SQLAlchemyError as exc:
                db.rollback()
                raise StoreError(f"Delete from {table} failed: {exc}") from exc
        logger.debug("Deleted %d %s row(s) matching %s", len(objs), table, filters)
        return len(objs)

    def _enforce_admin_retained(self, db: Session, group_id: str) -> None:
        """Runs inside a membership delete, after the flush."""
        remaining = db.scalar(select(func.count(Membership.id)).where(Membership.group_id == group_id))
        if remaining == 0:
            group = db.get(Group, group_id)
            if group is not None:
                db.delete(group)
                logger.info("Dissolved group %s after its last member left", group_id)
            return
        admins = db.scalar(
            select(func.count(Membership.id)).where(
                Membership.group_id == group_id,
                Membership.role == GroupRole.admin,
            )
        )
        if admins == 0:
            raise AdminRetentionError("A group must keep at least one admin")

    def _require_member(self, db: Session, group_id: Optional[str], account_id: Optional[str]) -> None:
        try:
            found = db.scalar(
                select(Membership.id).where(Membership.group_id == group_id, Membership.user_id == account_id)
            )
        except SQLAlchemyError as exc:
            raise StoreError(f"Membership check failed: {exc}") from exc
        if found is None:
            raise MembershipRequiredError("Only group members can create reminders")
