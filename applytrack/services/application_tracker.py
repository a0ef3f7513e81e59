import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.db import application as application_model
from ..models.db import resume as resume_model
from .. import schemas
from .query_builder import ApplicationFilters, ApplicationQuery, HasId, build_listing_query

logger = logging.getLogger(__name__)


def get_application_by_id(db: Session, application_id: int, user_id: int):
    return db.query(application_model.Application).filter(
        application_model.Application.id == application_id,
        application_model.Application.user_id == user_id
    ).first()


def get_applications_for_user(db: Session, user_id: int, filters: ApplicationFilters, today: Optional[date] = None):
    """Filtered, sorted listing as ``(application, is_overdue)`` pairs."""
    return build_listing_query(user_id, filters, today=today).all(db)


def get_application_with_flags(db: Session, application_id: int, user_id: int, today: Optional[date] = None):
    return ApplicationQuery(user_id, today=today).where(HasId(application_id)).first(db)


def _owned_resumes(db: Session, resume_ids: List[int], user_id: int):
    if not resume_ids:
        return []
    resumes = db.query(resume_model.Resume).filter(
        resume_model.Resume.id.in_(set(resume_ids)),
        resume_model.Resume.user_id == user_id
    ).all()
    skipped = set(resume_ids) - {r.id for r in resumes}
    if skipped:
        logger.info("Skipping resume links not owned by user %s: %s", user_id, sorted(skipped))
    return resumes


def create_application_for_user(db: Session, application: schemas.ApplicationCreate, user_id: int):
    db_application = application_model.Application(
        **application.model_dump(exclude={"resume_ids"}), user_id=user_id
    )
    if application.resume_ids:
        db_application.resumes = _owned_resumes(db, application.resume_ids, user_id)
    db.add(db_application)
    db.commit()
    db.refresh(db_application)
    logger.info("Created application %s for user %s", db_application.id, user_id)
    return db_application


def update_application(db: Session, application_id: int, application_update: schemas.ApplicationCreate, user_id: int):
    """
    Replace every field of an application. Resume links are only replaced
    when ``resume_ids`` was sent.
    """
    db_application = get_application_by_id(db=db, application_id=application_id, user_id=user_id)
    if db_application:
        update_data = application_update.model_dump(exclude={"resume_ids"})
        for key, value in update_data.items():
            setattr(db_application, key, value)
        if application_update.resume_ids is not None:
            db_application.resumes = _owned_resumes(db, application_update.resume_ids, user_id)
        db_application.updated_at = datetime.utcnow()
        db.commit()
        db.refresh(db_application)
    return db_application


def delete_application(db: Session, application_id: int, user_id: int):
    db_application = get_application_by_id(db=db, application_id=application_id, user_id=user_id)
    if db_application:
        # Link rows go with the application through the secondary relationship.
        db.delete(db_application)
        db.commit()
        logger.info("Deleted application %s for user %s", application_id, user_id)
    return db_application


def get_status_summary(db: Session, user_id: int) -> dict:
    """Dashboard counters: one per known status plus the total."""
    rows = db.query(
        application_model.Application.status, func.count(application_model.Application.id)
    ).filter(
        application_model.Application.user_id == user_id
    ).group_by(application_model.Application.status).all()

    counts = dict(rows)
    stats = {s.lower(): int(counts.get(s, 0)) for s in application_model.APPLICATION_STATUSES}
    stats["total"] = int(sum(counts.values()))
    return stats
