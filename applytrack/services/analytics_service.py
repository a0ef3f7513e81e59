"""
Read-only summaries over a user's applications.

Each function runs its own query and has no side effects, so callers can ask
for any subset in any order.
"""
import logging
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_
from sqlalchemy.orm import Session

from ..models.db.application import Application, TERMINAL_STATUSES, application_resumes
from ..models.db.resume import Resume

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = "week"
TOP_COMPANIES_LIMIT = 10
UPCOMING_DAYS = 7


def _months_before(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    # Clamp to the last day of the target month
    next_month = date(year + (month == 12), month % 12 + 1, 1)
    last_day = (next_month - timedelta(days=1)).day
    return date(year, month, min(day.day, last_day))


def _iso_week_label(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-{iso_week:02d}"


def _month_label(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


# Closed lookup: grouping label and trailing window start for each period.
PERIODS: Dict[str, Tuple[Callable[[date], str], Callable[[date], date]]] = {
    "week": (_iso_week_label, lambda today: today - timedelta(weeks=12)),
    "month": (_month_label, lambda today: _months_before(today, 6)),
}


def resolve_period(period: Optional[str]) -> str:
    return period if period in PERIODS else DEFAULT_PERIOD


def status_counts(db: Session, user_id: int) -> dict:
    count = func.count(Application.id).label("count")
    rows = db.query(Application.status, count).filter(
        Application.user_id == user_id
    ).group_by(Application.status).order_by(count.desc(), Application.status.asc()).all()

    total = db.query(func.count(Application.id)).filter(Application.user_id == user_id).scalar()
    return {
        "status_counts": [{"status": status, "count": int(n)} for status, n in rows],
        "total": int(total or 0),
    }


def applications_over_time(db: Session, user_id: int, period: Optional[str] = None,
                           today: Optional[date] = None) -> dict:
    """
    Count applications per ISO week or calendar month inside a trailing window.
    The application date is used when present, otherwise the creation date.
    """
    period = resolve_period(period)
    today = today or date.today()
    label_for, window_start = PERIODS[period]
    start = window_start(today)
    start_dt = datetime.combine(start, datetime.min.time())

    rows = db.query(Application.application_date, Application.created_at).filter(
        Application.user_id == user_id,
        or_(
            Application.application_date >= start,
            and_(Application.application_date.is_(None), Application.created_at >= start_dt),
        ),
    ).all()

    buckets = Counter()
    for applied_on, created_at in rows:
        effective = applied_on or created_at.date()
        buckets[label_for(effective)] += 1

    return {
        "data": [{"period": label, "count": n} for label, n in sorted(buckets.items())],
        "period": period,
    }


def resume_usage(db: Session, user_id: int) -> dict:
    usage = func.count(application_resumes.c.application_id).label("usage_count")
    rows = db.query(Resume.id, Resume.original_name, usage).outerjoin(
        application_resumes, Resume.id == application_resumes.c.resume_id
    ).filter(
        Resume.user_id == user_id
    ).group_by(Resume.id, Resume.original_name).order_by(usage.desc(), Resume.id.asc()).all()

    return {
        "resumes": [
            {"id": resume_id, "name": name, "usage_count": int(n)}
            for resume_id, name, n in rows
        ]
    }


def top_companies(db: Session, user_id: int, limit: int = TOP_COMPANIES_LIMIT) -> dict:
    count = func.count(Application.id).label("count")
    top = db.query(Application.company_name, count).filter(
        Application.user_id == user_id
    ).group_by(Application.company_name).order_by(
        count.desc(), Application.company_name.asc()
    ).limit(limit).all()

    names = [name for name, _ in top]
    seen: Dict[str, set] = {name: set() for name in names}
    if names:
        pairs = db.query(Application.company_name, Application.status).filter(
            Application.user_id == user_id,
            Application.company_name.in_(names),
        ).distinct().all()
        for name, status in pairs:
            seen[name].add(status)

    return {
        "companies": [
            {"company_name": name, "count": int(n), "statuses": sorted(seen[name])}
            for name, n in top
        ]
    }


def follow_up_summary(db: Session, user_id: int, today: Optional[date] = None) -> dict:
    today = today or date.today()
    horizon = today + timedelta(days=UPCOMING_DAYS)
    follow_up = Application.follow_up_date

    def tally(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    row = db.query(
        tally(follow_up < today),
        tally(follow_up == today),
        tally(and_(follow_up > today, follow_up <= horizon)),
        tally(follow_up.is_not(None)),
    ).filter(
        Application.user_id == user_id,
        Application.status.not_in(TERMINAL_STATUSES),
    ).one()

    overdue, due_today, upcoming, with_follow_up = row
    return {
        "follow_ups": {
            "overdue": int(overdue),
            "today": int(due_today),
            "upcoming": int(upcoming),
            "total_with_followup": int(with_follow_up),
        }
    }
