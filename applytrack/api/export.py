from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.orm import Session

from .. import schemas
from ..services import export_service
from ..models.db.database import get_db
from .auth import get_current_active_user

router = APIRouter()


def _attachment(filename: str) -> dict:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/json")
def export_json(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Download every application as a JSON document.
    """
    payload = export_service.build_json_export(db, user_id=current_user.id)
    return JSONResponse(content=payload, headers=_attachment(export_service.export_filename("json")))


@router.get("/csv")
def export_csv(
    db: Session = Depends(get_db),
    current_user: schemas.User = Depends(get_current_active_user)
):
    """
    Download every application as CSV.
    """
    body = export_service.build_csv_export(db, user_id=current_user.id)
    return Response(
        content=body,
        media_type="text/csv",
        headers=_attachment(export_service.export_filename("csv")),
    )
