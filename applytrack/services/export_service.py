import csv
import io
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from ..models.db.application import Application

CSV_COLUMNS = [
    ("Company", "company_name"),
    ("Job Title", "job_title"),
    ("Location", "location"),
    ("URL", "job_url"),
    ("Salary Min", "salary_min"),
    ("Salary Max", "salary_max"),
    ("Salary", "salary"),
    ("Applied Date", "application_date"),
    ("Source", "application_source"),
    ("Status", "status"),
    ("Notes", "notes"),
    ("Follow-up Date", "follow_up_date"),
    ("Interview Round", "interview_round"),
    ("Interview Notes", "interview_notes"),
    ("Created At", "created_at"),
]

JSON_FIELDS = [
    "id", "company_name", "job_title", "experience_level", "job_description",
    "job_requirements", "location", "job_url", "salary_min", "salary_max", "salary",
    "application_date", "application_source", "status", "notes", "follow_up_date",
    "interview_round", "interview_notes", "created_at", "updated_at",
]


def export_filename(extension: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"applytrack-export-{today.isoformat()}.{extension}"


def _plain(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def build_json_export(db: Session, user_id: int, now: Optional[datetime] = None) -> dict:
    """Every application of the user, newest update first, with resume names."""
    applications = db.query(Application).options(
        selectinload(Application.resumes)
    ).filter(
        Application.user_id == user_id
    ).order_by(Application.updated_at.desc(), Application.id.desc()).all()

    records = []
    for app in applications:
        record = {field: _plain(getattr(app, field)) for field in JSON_FIELDS}
        record["resumes"] = [{"id": r.id, "name": r.original_name} for r in app.resumes]
        records.append(record)

    return {
        "export_date": (now or datetime.utcnow()).isoformat(),
        "total_applications": len(records),
        "applications": records,
    }


def format_csv(applications: List[Application]) -> str:
    """
    Render applications as CSV. Fields containing a comma, quote or newline
    are quoted with embedded quotes doubled; missing values are empty.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow([header for header, _ in CSV_COLUMNS])
    for app in applications:
        writer.writerow([
            "" if getattr(app, field) is None else _plain(getattr(app, field))
            for _, field in CSV_COLUMNS
        ])
    return buffer.getvalue().rstrip("\n")


def build_csv_export(db: Session, user_id: int) -> str:
    applications = db.query(Application).filter(
        Application.user_id == user_id
    ).order_by(
        Application.application_date.desc().nulls_last(), Application.id.desc()
    ).all()
    return format_csv(applications)
