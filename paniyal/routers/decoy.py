# paniyal/routers/decoy.py
from fastapi import APIRouter, Request, status

from paniyal.routers.auth import client_key
from paniyal.schemas.decoy import DecoyAbort, DecoyOut
from paniyal.services.decoy import decoy_service

router = APIRouter(prefix="/decoy", tags=["Decoy"])


@router.post("/", response_model=DecoyOut, status_code=status.HTTP_201_CREATED)
def start_sequence(request: Request):
    sequence = decoy_service.start(client_key(request))
    return decoy_service.state(sequence)


@router.get("/{sequence_id}", response_model=DecoyOut)
def get_sequence(sequence_id: str):
    """Countdown state; `redirect_to` is set once the timer has run out"""
    return decoy_service.state(decoy_service.get(sequence_id))


@router.post("/{sequence_id}/abort", response_model=DecoyOut)
def abort_sequence(sequence_id: str, payload: DecoyAbort):
    sequence = decoy_service.abort(sequence_id, payload.code)
    return decoy_service.state(sequence)
