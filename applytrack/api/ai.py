import logging

from fastapi import APIRouter, Depends

from .. import schemas
from ..services import gemini_service
from ..utils.api_helpers import handle_service_error, validate_non_empty_string
from .auth import get_current_active_user

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/cover-letter", response_model=schemas.CoverLetterResponse, summary="Generate a Cover Letter")
def generate_cover_letter(
    request: schemas.CoverLetterRequest,
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Writes a cover letter for the given role from the job description and
    the candidate's background.
    """
    validate_non_empty_string(request.job_title, "Job title")
    validate_non_empty_string(request.company_name, "Company name")

    try:
        cover_letter = gemini_service.generate_cover_letter(
            job_title=request.job_title,
            company_name=request.company_name,
            job_description=request.job_description,
            resume_text=request.resume_text,
            tone=request.tone or "professional",
        )
    except Exception as e:
        raise handle_service_error(e, "Cover Letter Generation")
    return schemas.CoverLetterResponse(cover_letter=cover_letter)


@router.post("/match-resume", response_model=schemas.MatchResumeResponse, summary="Score a Resume Against a Job")
def match_resume(
    request: schemas.MatchResumeRequest,
    current_user: schemas.User = Depends(get_current_active_user)
):
    validate_non_empty_string(request.job_description, "Job description")
    validate_non_empty_string(request.resume_text, "Resume text")

    try:
        result = gemini_service.match_resume(request.job_description, request.resume_text)
    except Exception as e:
        raise handle_service_error(e, "Resume Match")
    if result.is_fallback:
        logger.info("Resume match for user %s served from fallback", current_user.id)
    return schemas.MatchResumeResponse(**result.data)


@router.post("/interview-questions", response_model=schemas.InterviewQuestionsResponse,
             summary="Generate Interview Questions")
def generate_interview_questions(
    request: schemas.InterviewQuestionsRequest,
    current_user: schemas.User = Depends(get_current_active_user)
):
    validate_non_empty_string(request.job_title, "Job title")

    try:
        result = gemini_service.interview_questions(
            job_title=request.job_title,
            company_name=request.company_name,
            job_description=request.job_description,
            experience_level=request.experience_level or "Mid-Level",
        )
    except Exception as e:
        raise handle_service_error(e, "Interview Question Generation")
    if result.is_fallback:
        logger.info("Interview questions for user %s served from fallback", current_user.id)
    return schemas.InterviewQuestionsResponse(**result.data)
