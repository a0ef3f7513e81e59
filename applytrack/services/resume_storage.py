"""
Resume files on disk plus their database rows.

The file is written before the row is inserted and removed again if the
insert fails. On delete the row goes first; removing the file afterwards is
best effort and failures are only logged.
"""
import logging
import os
import random
import time
from typing import BinaryIO, Optional

from sqlalchemy.orm import Session

from ..config.settings import get_settings
from ..models.db import resume as resume_model

logger = logging.getLogger(__name__)


class ResumeValidationError(ValueError):
    """Upload rejected before anything was stored."""


def get_resumes_for_user(db: Session, user_id: int):
    return db.query(resume_model.Resume).filter(
        resume_model.Resume.user_id == user_id
    ).order_by(resume_model.Resume.uploaded_at.desc(), resume_model.Resume.id.desc()).all()


def get_resume_by_id(db: Session, resume_id: int, user_id: int):
    return db.query(resume_model.Resume).filter(
        resume_model.Resume.id == resume_id,
        resume_model.Resume.user_id == user_id
    ).first()


def _too_large(limit: int) -> ResumeValidationError:
    return ResumeValidationError(f"File too large. Maximum size is {limit // (1024 * 1024)}MB.")


def read_upload(stream: BinaryIO, declared_size: Optional[int] = None) -> bytes:
    """
    Read an uploaded file without buffering more than one byte past the limit.
    ``declared_size`` rejects early when the multipart part already reports it.
    """
    limit = get_settings().max_resume_size
    if declared_size is not None and declared_size > limit:
        raise _too_large(limit)
    content = stream.read(limit + 1)
    if len(content) > limit:
        raise _too_large(limit)
    return content


def validate_upload(content: bytes, mime_type: str) -> None:
    settings = get_settings()
    if mime_type not in settings.allowed_resume_mime_types:
        raise ResumeValidationError("Invalid file type. Only PDF, DOC, and DOCX files are allowed.")
    if len(content) > settings.max_resume_size:
        raise _too_large(settings.max_resume_size)


def _stored_name(user_id: int, original_name: str) -> str:
    unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    _, ext = os.path.splitext(original_name)
    return f"resume-{user_id}-{unique_suffix}{ext.lower()}"


def save_resume(db: Session, user_id: int, original_name: str, content: bytes, mime_type: str):
    validate_upload(content, mime_type)

    upload_dir = get_settings().upload_directory
    os.makedirs(upload_dir, exist_ok=True)
    file_name = _stored_name(user_id, original_name)
    file_path = os.path.join(upload_dir, file_name)

    with open(file_path, "wb") as fh:
        fh.write(content)

    try:
        db_resume = resume_model.Resume(
            user_id=user_id,
            file_name=file_name,
            original_name=original_name,
            file_path=file_path,
            file_size=len(content),
            mime_type=mime_type,
        )
        db.add(db_resume)
        db.commit()
        db.refresh(db_resume)
    except Exception:
        db.rollback()
        remove_file(file_path)
        raise

    logger.info("Stored resume %s for user %s (%d bytes)", db_resume.id, user_id, len(content))
    return db_resume


def remove_file(file_path: str) -> bool:
    """Delete a stored file. Never raises; returns whether the file is gone."""
    if not file_path:
        return True
    try:
        os.remove(file_path)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.warning("Failed to delete resume file %s: %s", file_path, e)
        return False
    return True


def delete_resume(db: Session, resume_id: int, user_id: int):
    db_resume = get_resume_by_id(db, resume_id=resume_id, user_id=user_id)
    if db_resume is None:
        return None

    file_path = db_resume.file_path
    db.delete(db_resume)
    db.commit()
    remove_file(file_path)
    return db_resume
