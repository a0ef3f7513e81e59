from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from .. import schemas
from ..models.db import crud
from ..models.db.database import get_db
from ..security import get_password_hash, verify_password
from ..utils.api_helpers import check_resource_exists
from .auth import get_current_active_user, validate_new_password

router = APIRouter()


@router.get("/emails", response_model=schemas.UserEmailList)
def read_emails(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """Primary email first, then newest."""
    return {"emails": crud.get_emails_for_user(db, user_id=current_user.id)}


@router.post("/emails", response_model=schemas.UserEmailEnvelope, status_code=status.HTTP_201_CREATED)
def add_email(
    request: schemas.UserEmailCreate,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    db_email = crud.add_user_email(db, user_id=current_user.id, email=request.email)
    if db_email is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists")
    return {"email": db_email}


@router.delete("/emails/{email_id}", response_model=schemas.MessageResponse)
def delete_email(
    email_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    db_email = crud.delete_user_email(db, email_id=email_id, user_id=current_user.id)
    check_resource_exists(db_email, "Email")
    return {"message": "Email deleted"}


@router.put("/emails/{email_id}/primary", response_model=schemas.UserEmailEnvelope)
def set_primary_email(
    email_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    db_email = crud.set_primary_email(db, email_id=email_id, user_id=current_user.id)
    check_resource_exists(db_email, "Email")
    return {"email": db_email}


@router.put("/password", response_model=schemas.MessageResponse)
def change_password(
    request: schemas.PasswordChange,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    if not request.current_password or not request.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current and new password are required",
        )
    validate_new_password(request.new_password, "New password")

    if not verify_password(request.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    crud.update_password(db, current_user, get_password_hash(request.new_password))
    return {"message": "Password updated successfully"}
