"""
Backup / restore endpoints
"""
from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from depopro.core import get_db
from depopro.services import BackupService
from .deps import CurrentUser, require_admin

router = APIRouter(prefix="/backup", tags=["Backup"])


@router.get("")
def export_backup(db: Session = Depends(get_db)):
    """Whole store as one JSON document"""
    document = BackupService.export(db)
    stamp = document.exported_at.strftime("%Y%m%d_%H%M%S")
    return Response(
        content=document.model_dump_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="depopro_backup_{stamp}.json"'},
    )


@router.post("/restore")
async def restore_backup(
    request: Request,
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    """Replace everything with the posted backup document"""
    counts = BackupService.restore(db, await request.body())
    return {"message": "Backup restored", **counts}


@router.post("/restore/upload")
async def restore_backup_upload(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
):
    counts = BackupService.restore(db, await file.read())
    return {"message": "Backup restored", **counts}
