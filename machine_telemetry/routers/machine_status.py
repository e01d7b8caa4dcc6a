"""Current machine state — read endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from machine_telemetry.database import get_db
from machine_telemetry.models.machine_status import MachineStatus
from machine_telemetry.schemas.machine_status import MachineStatusOut

router = APIRouter()


@router.get("/machine-status", response_model=list[MachineStatusOut])
def get_all_status(db: Session = Depends(get_db)):
    """Latest known activate state for every machine."""
    return db.query(MachineStatus).order_by(MachineStatus.machine_id).all()


@router.get("/machine-status/{machine_id}", response_model=MachineStatusOut)
def get_machine_status(machine_id: str, db: Session = Depends(get_db)):
    status = db.query(MachineStatus).filter(MachineStatus.machine_id == machine_id).first()
    if not status:
        raise HTTPException(status_code=404, detail=f"Machine '{machine_id}' not found")
    return status
