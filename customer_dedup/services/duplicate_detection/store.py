"""
Customer Store

Query interface the candidate retriever runs against, plus the SQLAlchemy
implementation over the registry's customers table.

Every query is a filtered, server-side fetch of the candidate projection with
soft-deleted rows excluded. Nothing here scores or ranks.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence

from sqlalchemy import and_, func
from sqlalchemy.orm import Session
import structlog

from customer_dedup.models.customer import Customer
from customer_dedup.services.duplicate_detection.types import CandidateRecord

logger = structlog.get_logger(__name__)

SEARCHABLE_FIELDS = ("company_name", "phone", "tax_id")


class CustomerStore(ABC):
    """Read-only customer lookups used by the candidate retriever."""

    @abstractmethod
    def query_by_exact_field(
        self,
        field: str,
        value: str,
        case_insensitive: bool = False
    ) -> List[CandidateRecord]:
        """Records whose field equals value."""

    @abstractmethod
    def query_by_substring(self, field: str, pattern: str) -> List[CandidateRecord]:
        """Records whose field contains pattern, case-insensitive."""

    @abstractmethod
    def query_by_substrings(self, field: str, patterns: Sequence[str]) -> List[CandidateRecord]:
        """Records whose field contains every one of patterns, case-insensitive."""

    @abstractmethod
    def query_by_subsequence(self, field: str, characters: str) -> List[CandidateRecord]:
        """
        Records whose field contains characters in order, with anything in
        between ("6983" matches "69-83" and "6983").
        """


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user input is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlCustomerStore(CustomerStore):
    """
    CustomerStore backed by SQLAlchemy.

    Opens one session per query so branches can run on separate threads.

    Usage:
        store = SqlCustomerStore(SessionLocal)
        records = store.query_by_substring("phone", "2101234")
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        limit: Optional[int] = None
    ):
        """
        Args:
            session_factory: sessionmaker bound to the registry database
            limit: Optional cap on rows returned per query
        """
        self.session_factory = session_factory
        self.limit = limit

    def query_by_exact_field(
        self,
        field: str,
        value: str,
        case_insensitive: bool = False
    ) -> List[CandidateRecord]:
        column = _column(field)
        if case_insensitive:
            condition = func.lower(column) == value.lower()
        else:
            condition = column == value
        return self._fetch(condition, field=field, query="exact")

    def query_by_substring(self, field: str, pattern: str) -> List[CandidateRecord]:
        column = _column(field)
        condition = column.ilike(f"%{escape_like(pattern)}%", escape="\\")
        return self._fetch(condition, field=field, query="substring")

    def query_by_substrings(self, field: str, patterns: Sequence[str]) -> List[CandidateRecord]:
        if not patterns:
            # An empty filter would turn into a full table fetch
            return []
        column = _column(field)
        condition = and_(*[
            column.ilike(f"%{escape_like(pattern)}%", escape="\\")
            for pattern in patterns
        ])
        return self._fetch(condition, field=field, query="substrings")

    def query_by_subsequence(self, field: str, characters: str) -> List[CandidateRecord]:
        if not characters:
            return []
        column = _column(field)
        like_pattern = "%" + "%".join(escape_like(char) for char in characters) + "%"
        condition = column.ilike(like_pattern, escape="\\")
        return self._fetch(condition, field=field, query="subsequence")

    def _fetch(self, condition, field: str, query: str) -> List[CandidateRecord]:
        with self.session_factory() as session:
            q = session.query(Customer).filter(
                and_(
                    Customer.deleted_at.is_(None),
                    condition
                )
            )
            if self.limit:
                q = q.limit(self.limit)
            rows = q.all()
            records = [CandidateRecord.from_model(row) for row in rows]

        logger.debug("store_query_executed", field=field, query=query, count=len(records))
        return records


def _column(field: str):
    if field not in SEARCHABLE_FIELDS:
        raise ValueError(f"Unsupported customer field: {field}")
    return getattr(Customer, field)
