"""
Guided picking endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from depopro.core import get_db
from depopro.core.errors import NotFoundError
from depopro.schemas.picking import PickingStateResponse, ScanRequest, ScanResponse
from depopro.services import PickingService

router = APIRouter(prefix="/picking", tags=["Guided Picking"])


@router.post("/orders/{order_id}/start", response_model=PickingStateResponse, status_code=201)
def start_picking(order_id: str, db: Session = Depends(get_db)):
    session = PickingService.start(db, order_id)
    return PickingService.to_state(session)


@router.get("/orders/{order_id}/active", response_model=PickingStateResponse)
def active_session(order_id: str, db: Session = Depends(get_db)):
    session = PickingService.get_active_session(db, order_id)
    if session is None:
        raise NotFoundError(f"No picking in progress for order '{order_id}'")
    return PickingService.to_state(session)


@router.get("/sessions/{session_id}", response_model=PickingStateResponse)
def get_session(session_id: str, db: Session = Depends(get_db)):
    return PickingService.to_state(PickingService.get_session(db, session_id))


@router.post("/sessions/{session_id}/scan", response_model=ScanResponse)
def scan(session_id: str, request: ScanRequest, db: Session = Depends(get_db)):
    return PickingService.scan(db, session_id, request.code)


@router.post("/sessions/{session_id}/skip", response_model=PickingStateResponse)
def skip(session_id: str, db: Session = Depends(get_db)):
    return PickingService.to_state(PickingService.skip(db, session_id))


@router.post("/sessions/{session_id}/abort", response_model=PickingStateResponse)
def abort(session_id: str, db: Session = Depends(get_db)):
    return PickingService.to_state(PickingService.abort(db, session_id))
