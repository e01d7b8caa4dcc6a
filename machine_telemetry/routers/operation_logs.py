# machine_telemetry/routers/operation_logs.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from machine_telemetry.database import get_db
from machine_telemetry.models.operation_log import OperationLog
from machine_telemetry.schemas.operation_log import OperationLogOut
from typing import Optional

router = APIRouter()


@router.get("/operation-logs", response_model=list[OperationLogOut], summary="Recorded state transitions")
def get_operation_logs(
    machine_id: Optional[str] = None,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    """Newest first. Filter by machine_id."""
    q = db.query(OperationLog)
    if machine_id:
        q = q.filter(OperationLog.machine_id == machine_id)
    return q.order_by(OperationLog.created_at.desc(), OperationLog.id.desc()).limit(limit).all()
