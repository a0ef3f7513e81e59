from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import schemas
from ..services import analytics_service
from ..models.db.database import get_db
from .auth import get_current_active_user

router = APIRouter()


@router.get("/stats", response_model=schemas.StatusCounts)
def read_status_counts(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """Applications per status, most common first, plus the total."""
    return analytics_service.status_counts(db, user_id=current_user.id)


@router.get("/over-time", response_model=schemas.OverTime)
def read_applications_over_time(
    period: Optional[str] = "week",
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Applications per ISO week (last 12 weeks) or per month (last 6 months).
    Unknown periods are treated as ``week``.
    """
    return analytics_service.applications_over_time(
        db, user_id=current_user.id, period=period, today=date.today()
    )


@router.get("/resumes", response_model=schemas.ResumeUsageList)
def read_resume_usage(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    return analytics_service.resume_usage(db, user_id=current_user.id)


@router.get("/companies", response_model=schemas.CompanyList)
def read_top_companies(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    return analytics_service.top_companies(db, user_id=current_user.id)


@router.get("/follow-ups", response_model=schemas.FollowUpEnvelope)
def read_follow_up_summary(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """Overdue, due-today and upcoming follow-ups for applications still in play."""
    return analytics_service.follow_up_summary(db, user_id=current_user.id, today=date.today())
