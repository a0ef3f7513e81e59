import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from .. import schemas
from ..services import resume_storage
from ..models.db.database import get_db
from ..utils.api_helpers import check_resource_exists
from .auth import get_current_active_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=schemas.ResumeList)
def read_resumes(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """List the current user's resumes, newest first."""
    return {"resumes": resume_storage.get_resumes_for_user(db, user_id=current_user.id)}


@router.post("/upload", response_model=schemas.ResumeEnvelope, status_code=status.HTTP_201_CREATED)
def upload_resume(
    resume: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Store a PDF, DOC or DOCX resume (5MB max) sent as the ``resume`` form field.
    """
    if resume is None or not resume.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    logger.info("Received resume '%s' (%s) for user %s", resume.filename, resume.content_type, current_user.id)

    try:
        contents = resume_storage.read_upload(resume.file, declared_size=resume.size)
        db_resume = resume_storage.save_resume(
            db,
            user_id=current_user.id,
            original_name=resume.filename,
            content=contents,
            mime_type=resume.content_type or "",
        )
    except resume_storage.ResumeValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"resume": db_resume}


@router.get("/{resume_id}/download")
def download_resume(
    resume_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    db_resume = resume_storage.get_resume_by_id(db, resume_id=resume_id, user_id=current_user.id)
    check_resource_exists(db_resume, "Resume")
    if not os.path.exists(db_resume.file_path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found on server")
    return FileResponse(
        db_resume.file_path,
        media_type=db_resume.mime_type,
        filename=db_resume.original_name,
    )


@router.delete("/{resume_id}", response_model=schemas.MessageResponse)
def delete_resume(
    resume_id: int,
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """Delete the resume row and its links; the file on disk is removed best effort."""
    db_resume = resume_storage.delete_resume(db, resume_id=resume_id, user_id=current_user.id)
    check_resource_exists(db_resume, "Resume")
    return {"message": "Resume deleted successfully"}
