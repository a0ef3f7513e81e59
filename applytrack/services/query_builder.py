"""
Listing query for job applications.

Each filter is a predicate object that renders to a SQLAlchemy clause. The
builder always scopes to the owning user, ANDs the remaining predicates, and
resolves sort names through a closed allow-list of columns. Filter values only
ever reach the database as bound parameters.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from pydantic import BaseModel, validator
from sqlalchemy import and_, case, exists, or_, select
from sqlalchemy.orm import Session, selectinload

from ..models.db.application import Application, TERMINAL_STATUSES, application_resumes

logger = logging.getLogger(__name__)

DEFAULT_SORT = "updated_at"
URGENCY_SORT = "urgency"

SORT_COLUMNS = {
    "updated_at": Application.updated_at,
    "created_at": Application.created_at,
    "application_date": Application.application_date,
    "company_name": Application.company_name,
    "status": Application.status,
    "follow_up_date": Application.follow_up_date,
}


def overdue_clause(today: date):
    """Follow-up date strictly before today on an application still in play."""
    return and_(
        Application.follow_up_date < today,
        Application.status.not_in(TERMINAL_STATUSES),
    )


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class Predicate:
    """A single filter condition over job applications."""

    def clause(self, today: date):
        raise NotImplementedError


class OwnedBy(Predicate):
    def __init__(self, user_id: int):
        self.user_id = user_id

    def clause(self, today):
        return Application.user_id == self.user_id


class HasId(Predicate):
    def __init__(self, application_id: int):
        self.application_id = application_id

    def clause(self, today):
        return Application.id == self.application_id


class StatusIs(Predicate):
    def __init__(self, status: str):
        self.status = status

    def clause(self, today):
        return Application.status == self.status


class StatusIn(Predicate):
    def __init__(self, statuses: List[str]):
        self.statuses = list(statuses)

    def clause(self, today):
        return Application.status.in_(self.statuses)


class TextSearch(Predicate):
    """Case-insensitive substring match on company, title or notes."""

    def __init__(self, text: str):
        self.pattern = _like_pattern(text)

    def clause(self, today):
        return or_(
            Application.company_name.ilike(self.pattern, escape="\\"),
            Application.job_title.ilike(self.pattern, escape="\\"),
            Application.notes.ilike(self.pattern, escape="\\"),
        )


class AppliedFrom(Predicate):
    def __init__(self, start: date):
        self.start = start

    def clause(self, today):
        return Application.application_date >= self.start


class AppliedUntil(Predicate):
    def __init__(self, end: date):
        self.end = end

    def clause(self, today):
        return Application.application_date <= self.end


class UsesResume(Predicate):
    def __init__(self, resume_id: int):
        self.resume_id = resume_id

    def clause(self, today):
        return exists().where(
            application_resumes.c.application_id == Application.id,
            application_resumes.c.resume_id == self.resume_id,
        )


class NeedsAttention(Predicate):
    def clause(self, today):
        return overdue_clause(today)


def parse_statuses(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [s.strip() for s in raw.split(",") if s.strip()]


class ApplicationFilters(BaseModel):
    """
    Optional listing criteria as they arrive on the query string.

    Clients send every key, so ``?date_from=&resume_id=`` means "no filter"
    rather than a malformed date or id.
    """
    search: Optional[str] = None
    status: Optional[str] = None
    statuses: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    resume_id: Optional[int] = None
    needs_attention: Optional[bool] = None
    sort: Optional[str] = None
    order: Optional[str] = None

    @validator(
        'search', 'status', 'statuses', 'date_from', 'date_to', 'resume_id',
        'needs_attention', 'sort', 'order',
        pre=True,
    )
    def empty_values_are_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def predicates(self) -> List[Predicate]:
        found: List[Predicate] = []
        if self.status:
            found.append(StatusIs(self.status))
        elif parse_statuses(self.statuses):
            found.append(StatusIn(parse_statuses(self.statuses)))
        if self.search and self.search.strip():
            found.append(TextSearch(self.search.strip()))
        if self.date_from is not None:
            found.append(AppliedFrom(self.date_from))
        if self.date_to is not None:
            found.append(AppliedUntil(self.date_to))
        if self.resume_id is not None:
            found.append(UsesResume(self.resume_id))
        if self.needs_attention:
            found.append(NeedsAttention())
        return found


class ApplicationQuery:
    """
    Builds the SELECT for a user's applications.

    Rows come back as ``(Application, is_overdue)`` with linked resumes eagerly
    loaded. ``today`` anchors every date comparison so callers decide what
    "now" means.
    """

    def __init__(self, user_id: int, today: Optional[date] = None):
        self.today = today or date.today()
        self.predicates: List[Predicate] = [OwnedBy(user_id)]
        self.sort = DEFAULT_SORT
        self.descending = True

    def where(self, *predicates: Predicate) -> "ApplicationQuery":
        self.predicates.extend(predicates)
        return self

    def order_by(self, sort: Optional[str] = None, order: Optional[str] = None) -> "ApplicationQuery":
        if sort in SORT_COLUMNS or sort == URGENCY_SORT:
            self.sort = sort
        else:
            if sort:
                logger.debug("Ignoring unknown sort column %r", sort)
            self.sort = DEFAULT_SORT
        self.descending = (order or "desc").lower() != "asc"
        return self

    def is_overdue_column(self):
        return case((overdue_clause(self.today), True), else_=False).label("is_overdue")

    def _ordering(self):
        if self.sort == URGENCY_SORT:
            bucket = case(
                (Application.follow_up_date < self.today, 0),
                (Application.follow_up_date == self.today, 1),
                (Application.follow_up_date.is_not(None), 2),
                else_=3,
            )
            return [bucket, Application.follow_up_date.asc().nulls_last(), Application.id.asc()]

        column = SORT_COLUMNS[self.sort]
        if self.descending:
            return [column.desc().nulls_last(), Application.id.desc()]
        return [column.asc().nulls_last(), Application.id.asc()]

    def statement(self):
        conditions = [p.clause(self.today) for p in self.predicates]
        return (
            select(Application, self.is_overdue_column())
            .where(and_(*conditions))
            .options(selectinload(Application.resumes))
            .order_by(*self._ordering())
        )

    def all(self, db: Session) -> List[Tuple[Application, bool]]:
        return [(app, bool(flag)) for app, flag in db.execute(self.statement()).all()]

    def first(self, db: Session) -> Optional[Tuple[Application, bool]]:
        row = db.execute(self.statement().limit(1)).first()
        if row is None:
            return None
        return row[0], bool(row[1])


def build_listing_query(user_id: int, filters: ApplicationFilters, today: Optional[date] = None) -> ApplicationQuery:
    return (
        ApplicationQuery(user_id, today=today)
        .where(*filters.predicates())
        .order_by(filters.sort, filters.order)
    )
