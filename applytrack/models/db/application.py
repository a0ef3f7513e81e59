from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from .database import Base

APPLICATION_STATUSES = ("Applied", "Interview", "Assessment", "Offer", "Rejected", "Ghosted")
TERMINAL_STATUSES = ("Offer", "Rejected")
DEFAULT_STATUS = "Applied"
DEFAULT_EXPERIENCE_LEVEL = "Entry Level / New Grad"

application_resumes = Table(
    "application_resumes",
    Base.metadata,
    Column("application_id", Integer, ForeignKey("job_applications.id", ondelete="CASCADE"), primary_key=True),
    Column("resume_id", Integer, ForeignKey("resumes.id", ondelete="CASCADE"), primary_key=True),
)


class Application(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    company_name = Column(String, nullable=False, index=True)
    job_title = Column(String, nullable=False, index=True)
    experience_level = Column(String, default=DEFAULT_EXPERIENCE_LEVEL)
    job_description = Column(Text, nullable=True)
    job_requirements = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    job_url = Column(String, nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary = Column(String, nullable=True)

    application_date = Column(Date, nullable=True, index=True)
    application_source = Column(String, nullable=True)
    status = Column(String, default=DEFAULT_STATUS, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    follow_up_date = Column(Date, nullable=True, index=True)
    interview_round = Column(Integer, default=0, nullable=False)
    interview_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="applications")
    resumes = relationship(
        "Resume",
        secondary=application_resumes,
        back_populates="applications",
        order_by="Resume.id",
    )
