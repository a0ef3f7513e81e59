from datetime import date, datetime
from typing import Optional, List, Dict

from pydantic import BaseModel, Field, validator

from .models.db.application import (
    APPLICATION_STATUSES,
    DEFAULT_EXPERIENCE_LEVEL,
    DEFAULT_STATUS,
)


def _blank_to_none(v):
    if isinstance(v, str) and not v.strip():
        return None
    return v


# User Schemas
class UserBase(BaseModel):
    email: str

    @validator('email')
    def validate_email(cls, v):
        v = v.strip().lower()
        if '@' not in v:
            raise ValueError('Valid email is required')
        return v


class UserCreate(UserBase):
    password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserLogin(UserBase):
    password: str


class User(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    message: str
    user: User
    token: str


class UserEnvelope(BaseModel):
    user: User


class PasswordChange(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None


# User Email Schemas
class UserEmailCreate(UserBase):
    pass


class UserEmail(BaseModel):
    id: int
    email: str
    is_primary: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserEmailList(BaseModel):
    emails: List[UserEmail]


class UserEmailEnvelope(BaseModel):
    email: UserEmail


# Resume Schemas
class ResumeSummary(BaseModel):
    id: int
    file_name: str
    original_name: str

    class Config:
        from_attributes = True


class Resume(ResumeSummary):
    file_size: int
    mime_type: str
    uploaded_at: Optional[datetime] = None


class ResumeList(BaseModel):
    resumes: List[Resume]


class ResumeEnvelope(BaseModel):
    resume: Resume


# Application Tracker Schemas
class ApplicationBase(BaseModel):
    company_name: str
    job_title: str
    experience_level: Optional[str] = DEFAULT_EXPERIENCE_LEVEL
    job_description: Optional[str] = None
    job_requirements: Optional[str] = None
    location: Optional[str] = None
    job_url: Optional[str] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary: Optional[str] = None
    application_date: Optional[date] = None
    application_source: Optional[str] = None
    status: str = Field(DEFAULT_STATUS, examples=["Applied"])
    notes: Optional[str] = None
    follow_up_date: Optional[date] = None
    interview_round: int = Field(0, ge=0)
    interview_notes: Optional[str] = None


class ApplicationCreate(ApplicationBase):
    """Full application record as submitted. Updates resend every field."""
    resume_ids: Optional[List[int]] = None

    @validator(
        'job_description', 'job_requirements', 'location', 'job_url', 'salary',
        'application_date', 'application_source', 'notes', 'follow_up_date',
        'interview_notes', 'salary_min', 'salary_max',
        pre=True,
    )
    def empty_strings_are_null(cls, v):
        return _blank_to_none(v)

    @validator('company_name')
    def company_name_required(cls, v):
        if not v or not v.strip():
            raise ValueError('Company name is required')
        return v.strip()

    @validator('job_title')
    def job_title_required(cls, v):
        if not v or not v.strip():
            raise ValueError('Job title is required')
        return v.strip()

    @validator('experience_level', pre=True)
    def default_experience_level(cls, v):
        return _blank_to_none(v) or DEFAULT_EXPERIENCE_LEVEL

    @validator('status', pre=True)
    def validate_status(cls, v):
        v = _blank_to_none(v) or DEFAULT_STATUS
        if v not in APPLICATION_STATUSES:
            raise ValueError('Invalid status')
        return v

    @validator('interview_round', pre=True)
    def default_interview_round(cls, v):
        return 0 if _blank_to_none(v) is None else v

    @validator('salary_max')
    def salary_range_ordered(cls, v, values):
        low = values.get('salary_min')
        if v is not None and low is not None and v < low:
            raise ValueError('Salary max must not be less than salary min')
        return v


class Application(ApplicationBase):
    id: int
    user_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resumes: List[ResumeSummary] = []
    is_overdue: bool = False

    class Config:
        from_attributes = True


class ApplicationList(BaseModel):
    applications: List[Application]


class ApplicationEnvelope(BaseModel):
    application: Application


class MessageResponse(BaseModel):
    message: str


class StatusSummary(BaseModel):
    stats: Dict[str, int]


# Analytics Schemas
class StatusCount(BaseModel):
    status: str
    count: int


class StatusCounts(BaseModel):
    status_counts: List[StatusCount]
    total: int


class PeriodCount(BaseModel):
    period: str
    count: int


class OverTime(BaseModel):
    data: List[PeriodCount]
    period: str


class ResumeUsage(BaseModel):
    id: int
    name: str
    usage_count: int


class ResumeUsageList(BaseModel):
    resumes: List[ResumeUsage]


class CompanyCount(BaseModel):
    company_name: str
    count: int
    statuses: List[str]


class CompanyList(BaseModel):
    companies: List[CompanyCount]


class FollowUpSummary(BaseModel):
    overdue: int
    today: int
    upcoming: int
    total_with_followup: int


class FollowUpEnvelope(BaseModel):
    follow_ups: FollowUpSummary


# AI Tool Schemas
class CoverLetterRequest(BaseModel):
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    job_description: Optional[str] = None
    resume_text: Optional[str] = None
    tone: str = "professional"


class CoverLetterResponse(BaseModel):
    cover_letter: str


class MatchResumeRequest(BaseModel):
    job_description: Optional[str] = None
    resume_text: Optional[str] = None


class MatchResumeResponse(BaseModel):
    match_score: int
    matching_skills: List[str] = []
    missing_skills: List[str] = []
    recommendations: List[str] = []
    summary: str = ""


class InterviewQuestionsRequest(BaseModel):
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    job_description: Optional[str] = None
    experience_level: str = "Mid-Level"


class InterviewQuestion(BaseModel):
    question: str
    tip: str = ""


class InterviewQuestionsResponse(BaseModel):
    technical: List[InterviewQuestion]
    behavioral: List[InterviewQuestion]
    ask_interviewer: List[InterviewQuestion]
