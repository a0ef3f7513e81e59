from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .. import schemas
from ..services import application_tracker as application_service
from ..services.query_builder import ApplicationFilters
from ..models.db.database import get_db
from ..utils.api_helpers import check_resource_exists, format_validation_errors
from .auth import get_current_active_user

router = APIRouter()


def _with_flag(application, is_overdue: bool) -> schemas.Application:
    return schemas.Application.model_validate(application).model_copy(update={"is_overdue": is_overdue})


def _read_back(db: Session, application_id: int, user_id: int) -> schemas.Application:
    found = application_service.get_application_with_flags(
        db, application_id=application_id, user_id=user_id, today=date.today()
    )
    check_resource_exists(found, "Application")
    return _with_flag(*found)


@router.get("", response_model=schemas.ApplicationList)
def read_applications(
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    statuses: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    resume_id: Optional[str] = None,
    needs_attention: Optional[str] = None,
    sort: Optional[str] = None,
    order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    List the current user's applications with optional filters and sorting.
    Empty query values are treated as absent.
    """
    try:
        filters = ApplicationFilters(
            search=search,
            status=status_filter,
            statuses=statuses,
            date_from=date_from,
            date_to=date_to,
            resume_id=resume_id,
            needs_attention=needs_attention,
            sort=sort,
            order=order,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=format_validation_errors(e.errors()))
    rows = application_service.get_applications_for_user(
        db, user_id=current_user.id, filters=filters, today=date.today()
    )
    return {"applications": [_with_flag(app, flag) for app, flag in rows]}


@router.get("/stats/summary", response_model=schemas.StatusSummary)
def read_status_summary(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Per-status counters for the dashboard.
    """
    return {"stats": application_service.get_status_summary(db, user_id=current_user.id)}


@router.get("/{application_id}", response_model=schemas.ApplicationEnvelope)
def read_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Retrieve a specific job application by its ID.
    """
    return {"application": _read_back(db, application_id, current_user.id)}


@router.post("", response_model=schemas.ApplicationEnvelope, status_code=status.HTTP_201_CREATED)
def create_application(
    application: schemas.ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Create a new job application entry for the current user.
    """
    db_application = application_service.create_application_for_user(
        db=db, application=application, user_id=current_user.id
    )
    return {"application": _read_back(db, db_application.id, current_user.id)}


@router.put("/{application_id}", response_model=schemas.ApplicationEnvelope)
def update_application(
    application_id: int,
    application: schemas.ApplicationCreate,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Replace a job application's details.
    """
    db_application = application_service.update_application(
        db, application_id=application_id, application_update=application, user_id=current_user.id
    )
    check_resource_exists(db_application, "Application")
    return {"application": _read_back(db, application_id, current_user.id)}


@router.delete("/{application_id}", response_model=schemas.MessageResponse)
def delete_application(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Delete a job application.
    """
    db_application = application_service.delete_application(
        db, application_id=application_id, user_id=current_user.id
    )
    check_resource_exists(db_application, "Application")
    return {"message": "Application deleted successfully"}
