"""
OwnerGate Backend: Data Store Interface and SQLAlchemy Implementation
======================================================================

What:  A generic per-entity CRUD client plus its async SQLAlchemy implementation.
Why:   AccessControlService only needs five operations per entity. Keeping them
       behind an abstract class lets tests hand the service an in-memory fake
       and keeps the service free of SQL.
How:   EntityStore defines the contract; SQLAlchemyEntityStore compiles
       dictionary filters into SQLAlchemy clauses and runs them on an AsyncSession;
       DataStore groups one store per entity, the way an ORM client exposes
       `client.project`, `client.invoice`, and so on.

Filter format (`where`):
    {"status": "PAID"}                          equality
    {"due_date": None}                          IS NULL
    {"name": {"contains": "acme", "mode": "insensitive"}}
    {"amount": {"gte": 100, "lt": 500}}         several operators are ANDed
    {"status": {"in": ["SENT", "OVERDUE"]}}
    {"OR": [{"name": {...}}, {"email": {...}}]} nested groups

    Top-level keys are always ANDed, so a constraint added at the top level
    (the ownership key) cannot be bypassed by an OR group.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Type

from sqlalchemy import and_, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.database import Base
from app.exceptions import InvalidFilterError, RecordNotFoundError, ValidationError
from app.models.client_profile import ClientProfile
from app.models.invoice import Invoice
from app.models.project import Project
from app.models.user import User

logger = logging.getLogger(__name__)

Where = Mapping[str, Any]

LOGICAL_KEYS = {"AND", "OR"}
STRING_OPERATORS = {"contains", "startswith", "endswith"}
COMPARISON_OPERATORS = {"equals", "not", "in", "not_in", "gt", "gte", "lt", "lte"}
SUPPORTED_OPERATORS = STRING_OPERATORS | COMPARISON_OPERATORS


class EntityStore(ABC):
    """
    Contract for one entity's storage.

    Implementations raise their own errors (connectivity, constraint
    violations, RecordNotFoundError); callers above the store do not
    translate them.
    """

    entity: str = "record"

    @abstractmethod
    async def find_many(self, where: Optional[Where] = None) -> List[Any]:
        """Every record matching `where` (all records when it is None or empty)."""
        ...

    @abstractmethod
    async def find_unique(self, where: Where) -> Optional[Any]:
        """The single record matching every constraint in `where`, or None."""
        ...

    @abstractmethod
    async def create(self, data: Mapping[str, Any]) -> Any:
        ...

    @abstractmethod
    async def update(self, where: Where, data: Mapping[str, Any]) -> Any:
        """Apply `data` to the record matching `where` and return it."""
        ...

    @abstractmethod
    async def delete(self, where: Where) -> Any:
        """Delete the record matching `where` and return it as it was."""
        ...


class SQLAlchemyEntityStore(EntityStore):
    """
    EntityStore over an AsyncSession for one mapped model.

    Writes are flushed but not committed; the request-scoped session from
    get_db_session() owns the transaction.
    """

    def __init__(self, session: AsyncSession, model: Type[Base], entity: str):
        self.session = session
        self.model = model
        self.entity = entity
        self._columns = model.__table__.columns

    # ── Filter compilation ────────────────────────────────────────────────

    def compile_where(self, where: Optional[Where]) -> List[ColumnElement]:
        """Translate a filter mapping into a list of clauses to be ANDed."""
        clauses: List[ColumnElement] = []
        for key, value in (where or {}).items():
            if key in LOGICAL_KEYS:
                clauses.append(self._compile_group(key, value))
                continue
            column = self._column(key)
            if isinstance(value, Mapping):
                clauses.extend(self._compile_operators(key, column, value))
            elif value is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == value)
        return clauses

    def _column(self, field: str):
        if field not in self._columns:
            raise InvalidFilterError(
                message=f"Unknown filter field '{field}' for {self.entity}",
                field=field,
            )
        return self._columns[field]

    def _compile_group(self, key: str, value: Any) -> ColumnElement:
        if not isinstance(value, (list, tuple)) or not value:
            raise InvalidFilterError(
                message=f"'{key}' expects a non-empty list of filters",
                field=key,
            )
        parts = [and_(*self.compile_where(sub)) for sub in value]
        return or_(*parts) if key == "OR" else and_(*parts)

    def _compile_operators(
        self, field: str, column, operators: Mapping[str, Any]
    ) -> List[ColumnElement]:
        insensitive = operators.get("mode") == "insensitive"
        clauses: List[ColumnElement] = []
        for op, operand in operators.items():
            if op == "mode":
                continue
            if op not in SUPPORTED_OPERATORS:
                raise InvalidFilterError(
                    message=f"Unsupported filter operator '{op}' on '{field}'",
                    field=field,
                    context={"operator": op},
                )

            if op in STRING_OPERATORS:
                method = f"i{op}" if insensitive else op
                clauses.append(getattr(column, method)(operand, autoescape=True))
            elif op == "equals":
                if operand is None:
                    clauses.append(column.is_(None))
                elif insensitive and isinstance(operand, str):
                    clauses.append(func.lower(column) == operand.lower())
                else:
                    clauses.append(column == operand)
            elif op == "not":
                clauses.append(column.is_not(None) if operand is None else column != operand)
            elif op == "in":
                clauses.append(column.in_(list(operand)))
            elif op == "not_in":
                clauses.append(column.not_in(list(operand)))
            elif op == "gt":
                clauses.append(column > operand)
            elif op == "gte":
                clauses.append(column >= operand)
            elif op == "lt":
                clauses.append(column < operand)
            elif op == "lte":
                clauses.append(column <= operand)
        return clauses

    def _check_fields(self, data: Mapping[str, Any]) -> None:
        unknown = [key for key in data if key not in self._columns]
        if unknown:
            raise ValidationError(
                message=f"Unknown {self.entity} field(s): {', '.join(sorted(unknown))}",
                context={"fields": unknown},
            )

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def find_many(self, where: Optional[Where] = None) -> List[Any]:
        query = select(self.model).where(*self.compile_where(where))
        if "created_at" in self._columns:
            query = query.order_by(desc(self._columns["created_at"]))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_unique(self, where: Where) -> Optional[Any]:
        if not where:
            raise InvalidFilterError(message=f"A {self.entity} lookup needs at least one constraint")
        result = await self.session.execute(
            select(self.model).where(*self.compile_where(where))
        )
        # More than one match is a store error (MultipleResultsFound) and propagates
        return result.scalar_one_or_none()

    async def create(self, data: Mapping[str, Any]) -> Any:
        self._check_fields(data)
        record = self.model(**dict(data))
        self.session.add(record)
        await self.session.flush()
        logger.debug("Created %s %s", self.entity, record.id)
        return record

    async def update(self, where: Where, data: Mapping[str, Any]) -> Any:
        self._check_fields(data)
        record = await self.find_unique(where)
        if record is None:
            raise RecordNotFoundError(self.entity, where)
        for key, value in data.items():
            setattr(record, key, value)
        await self.session.flush()
        return record

    async def delete(self, where: Where) -> Any:
        record = await self.find_unique(where)
        if record is None:
            raise RecordNotFoundError(self.entity, where)
        await self.session.delete(record)
        await self.session.flush()
        logger.debug("Deleted %s %s", self.entity, record.id)
        return record


class DataStore:
    """
    One EntityStore per entity kind, exposed as attributes.

    Built per request from the request's session (for_session) or from
    any set of substitute stores in tests.
    """

    ENTITY_ATTRIBUTES = ("user", "project", "client_profile", "invoice")

    def __init__(
        self,
        user: EntityStore,
        project: EntityStore,
        client_profile: EntityStore,
        invoice: EntityStore,
    ):
        self.user = user
        self.project = project
        self.client_profile = client_profile
        self.invoice = invoice

    @classmethod
    def for_session(cls, session: AsyncSession) -> "DataStore":
        return cls(
            user=SQLAlchemyEntityStore(session, User, "user"),
            project=SQLAlchemyEntityStore(session, Project, "project"),
            client_profile=SQLAlchemyEntityStore(session, ClientProfile, "client_profile"),
            invoice=SQLAlchemyEntityStore(session, Invoice, "invoice"),
        )

    def for_entity(self, entity: str) -> EntityStore:
        if entity not in self.ENTITY_ATTRIBUTES:
            raise KeyError(f"Unknown entity '{entity}'")
        return getattr(self, entity)


def as_dict(where: Optional[Where]) -> Dict[str, Any]:
    """Shallow, mutable copy of a filter or payload (None becomes {})."""
    return dict(where or {})
