"""Paginated bulk fetcher over the dashboard tables.

The hosted store caps a single query at 1000 rows, so every "give me all rows
of table X" read goes through ``fetch_all``: fixed-size pages from offset 0,
the exact count requested with the first page, stopping on an empty or short
page. A page failure propagates the store error; there is no retry and no
partial result.

Queries are described with ``TableQuery`` (table enum + typed filters) rather
than ad-hoc filter dicts. ``gather_queries`` runs a fixed fan-out of
descriptors concurrently, one worker thread and one session per branch.
"""
from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Sequence

from sqlalchemy import func, inspect as sa_inspect, select
from sqlalchemy.orm import Session

from ajira_admin.config import PAGINATION_SETTINGS
from ajira_admin.models.db import (
    AIChatConversation,
    AIChatMessage,
    AIChatMessageFeedback,
    AppUser,
    Company,
    CreditTransaction,
    Earning,
    GeneratedResume,
    Interview,
    JobApplication,
    LatestJob,
    NotificationHistory,
    Referral,
    Skill,
    SubscriptionHistory,
)
from ajira_admin.utils import get_logger

logger = get_logger(__name__)

Row = dict[str, Any]
SessionFactory = Callable[[], Session]


class Table(str, enum.Enum):
    EARNINGS = "earnings"
    ALL_USERS = "all_users"
    COMPANIES = "companies"
    LATEST_JOBS = "latest_jobs"
    JOB_APPLICATIONS = "job_applications"
    INTERVIEWS = "interviews"
    CREDIT_TRANSACTIONS = "credit_transactions"
    REFERRALS = "referrals"
    SUBSCRIPTION_HISTORY = "subscription_history"
    GENERATED_RESUMES = "generated_resumes"
    NOTIFICATION_HISTORY = "notification_history"
    SKILLS = "skills"
    AI_CHAT_CONVERSATIONS = "ai_chat_conversations"
    AI_CHAT_MESSAGES = "ai_chat_messages"
    AI_CHAT_FEEDBACK = "ai_chat_message_feedback"

    @property
    def model(self) -> type:
        return _TABLE_MODELS[self]


_TABLE_MODELS: dict[Table, type] = {
    Table.EARNINGS: Earning,
    Table.ALL_USERS: AppUser,
    Table.COMPANIES: Company,
    Table.LATEST_JOBS: LatestJob,
    Table.JOB_APPLICATIONS: JobApplication,
    Table.INTERVIEWS: Interview,
    Table.CREDIT_TRANSACTIONS: CreditTransaction,
    Table.REFERRALS: Referral,
    Table.SUBSCRIPTION_HISTORY: SubscriptionHistory,
    Table.GENERATED_RESUMES: GeneratedResume,
    Table.NOTIFICATION_HISTORY: NotificationHistory,
    Table.SKILLS: Skill,
    Table.AI_CHAT_CONVERSATIONS: AIChatConversation,
    Table.AI_CHAT_MESSAGES: AIChatMessage,
    Table.AI_CHAT_FEEDBACK: AIChatMessageFeedback,
}


class FilterOp(str, enum.Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


@dataclass(frozen=True)
class Filter:
    column: str
    op: FilterOp
    value: Any = None


@dataclass(frozen=True)
class TableQuery:
    """Immutable query descriptor; builder methods return a new descriptor."""

    table: Table
    columns: tuple[str, ...] | None = None
    filters: tuple[Filter, ...] = ()
    order_by: str | None = None
    descending: bool = False
    limit: int | None = None
    count_only: bool = False

    def _with_filter(self, column: str, op: FilterOp, value: Any = None) -> "TableQuery":
        return replace(self, filters=self.filters + (Filter(column, op, value),))

    def select(self, *columns: str) -> "TableQuery":
        return replace(self, columns=tuple(columns) or None)

    def eq(self, column: str, value: Any) -> "TableQuery":
        return self._with_filter(column, FilterOp.EQ, value)

    def neq(self, column: str, value: Any) -> "TableQuery":
        return self._with_filter(column, FilterOp.NEQ, value)

    def gt(self, column: str, value: Any) -> "TableQuery":
        return self._with_filter(column, FilterOp.GT, value)

    def gte(self, column: str, value: Any) -> "TableQuery":
        return self._with_filter(column, FilterOp.GTE, value)

    def lt(self, column: str, value: Any) -> "TableQuery":
        return self._with_filter(column, FilterOp.LT, value)

    def lte(self, column: str, value: Any) -> "TableQuery":
        return self._with_filter(column, FilterOp.LTE, value)

    def in_(self, column: str, values: Iterable[Any]) -> "TableQuery":
        return self._with_filter(column, FilterOp.IN, tuple(values))

    def is_null(self, column: str) -> "TableQuery":
        return self._with_filter(column, FilterOp.IS_NULL)

    def not_null(self, column: str) -> "TableQuery":
        return self._with_filter(column, FilterOp.NOT_NULL)

    def between(self, column: str, start: Any, end: Any) -> "TableQuery":
        """Half-open ``start <= column < end`` window."""
        return self.gte(column, start).lt(column, end)

    def order(self, column: str, desc: bool = False) -> "TableQuery":
        return replace(self, order_by=column, descending=desc)

    def take(self, limit: int) -> "TableQuery":
        return replace(self, limit=limit)

    def head(self) -> "TableQuery":
        """Mark as an exact-count query (no rows fetched)."""
        return replace(self, count_only=True)


@dataclass
class Page:
    rows: list[Row] = field(default_factory=list)
    total: int | None = None


def _attribute_names(model: type) -> list[str]:
    return [attr.key for attr in sa_inspect(model).column_attrs]


def _primary_key_name(model: type) -> str:
    mapper = sa_inspect(model)
    pk_column = mapper.primary_key[0]
    return mapper.get_property_by_column(pk_column).key


def _condition(model: type, flt: Filter):
    column = getattr(model, flt.column)
    op = flt.op
    if op is FilterOp.EQ:
        return column == flt.value
    if op is FilterOp.NEQ:
        return column != flt.value
    if op is FilterOp.GT:
        return column > flt.value
    if op is FilterOp.GTE:
        return column >= flt.value
    if op is FilterOp.LT:
        return column < flt.value
    if op is FilterOp.LTE:
        return column <= flt.value
    if op is FilterOp.IN:
        return column.in_(list(flt.value or ()))
    if op is FilterOp.IS_NULL:
        return column.is_(None)
    if op is FilterOp.NOT_NULL:
        return column.is_not(None)
    raise ValueError(f"Unsupported filter op: {op}")


def _conditions(query: TableQuery) -> list:
    model = query.table.model
    return [_condition(model, flt) for flt in query.filters]


def count_rows(session: Session, query: TableQuery) -> int:
    """Exact row count for the descriptor's filters."""
    model = query.table.model
    stmt = select(func.count()).select_from(model).where(*_conditions(query))
    return int(session.execute(stmt).scalar_one())


def fetch_page(
    session: Session,
    query: TableQuery,
    offset: int,
    limit: int,
    with_count: bool = False,
) -> Page:
    """Fetch one ordered page; rows are dicts keyed by model attribute names."""
    model = query.table.model
    names = list(query.columns) if query.columns else _attribute_names(model)
    pk_name = _primary_key_name(model)
    order_column = getattr(model, query.order_by or pk_name)
    ordering = [order_column.desc() if query.descending else order_column.asc()]
    if query.order_by and query.order_by != pk_name:
        # Tie-breaker keeps offsets stable across pages
        ordering.append(getattr(model, pk_name).asc())

    stmt = (
        select(*[getattr(model, name).label(name) for name in names])
        .where(*_conditions(query))
        .order_by(*ordering)
        .offset(offset)
        .limit(limit)
    )
    rows = [dict(mapping) for mapping in session.execute(stmt).mappings().all()]
    total = count_rows(session, query) if with_count else None
    return Page(rows=rows, total=total)


def fetch_all(session: Session, query: TableQuery, page_size: int | None = None) -> list[Row]:
    """Fetch every matching row by paging through the table.

    Stops on an empty page, on a page shorter than ``page_size``, or once the
    offset has moved past the total reported with the first page. A table of
    exactly ``page_size`` rows therefore costs two page requests.
    """
    size = int(page_size or PAGINATION_SETTINGS["page_size"])
    rows: list[Row] = []
    offset = 0
    total: int | None = None

    while True:
        request_size = size
        if query.limit is not None:
            request_size = min(size, query.limit - len(rows))
            if request_size <= 0:
                break
        page = fetch_page(session, query, offset, request_size, with_count=(offset == 0))
        if offset == 0:
            total = page.total
        if not page.rows:
            break
        rows.extend(page.rows)
        if len(page.rows) < request_size:
            break
        offset += request_size
        if total is not None and offset > total:
            break

    logger.debug("Bulk fetch complete", table=query.table.value, rows=len(rows), pages=offset // size + 1)
    return rows


def run_query(session: Session, query: TableQuery) -> list[Row] | int:
    if query.count_only:
        return count_rows(session, query)
    return fetch_all(session, query)


async def fetch_all_async(session_factory: SessionFactory, query: TableQuery) -> list[Row] | int:
    """Run one descriptor in a worker thread with its own session."""

    def _run() -> list[Row] | int:
        with session_factory() as session:
            return run_query(session, query)

    return await asyncio.to_thread(_run)


async def gather_queries(session_factory: SessionFactory, *queries: TableQuery) -> Sequence[list[Row] | int]:
    """Fork-join fan-out: all branches awaited together, any failure fails the batch."""
    return await asyncio.gather(*(fetch_all_async(session_factory, q) for q in queries))


__all__ = [
    "Table",
    "FilterOp",
    "Filter",
    "TableQuery",
    "Page",
    "count_rows",
    "fetch_page",
    "fetch_all",
    "run_query",
    "fetch_all_async",
    "gather_queries",
]
