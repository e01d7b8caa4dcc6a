"""
Change detection + conditional persistence for machine state.

A transition (new activate value differs from CurrentMachineStatus, or no
row exists yet) appends one OperationLogs row and upserts the status row.
Both writes share one transaction: either both land or neither does.
An unchanged state writes nothing.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from machine_telemetry.models.machine_status import MachineStatus
from machine_telemetry.models.operation_log import OperationLog
from machine_telemetry.utils.logger import get_logger

logger = get_logger(__name__)


def get_current_status(db: Session, machine_id: str) -> Optional[str]:
    return (
        db.query(MachineStatus.activate)
        .filter(MachineStatus.machine_id == machine_id)
        .scalar()
    )


async def apply_status_change(db: Session, machine_id: str, activate: str, now: datetime) -> bool:
    """Returns True when a transition was recorded."""
    previous = get_current_status(db, machine_id)
    if previous == activate:
        logger.info(f"[STATUS] {machine_id}: unchanged ({activate}) — no write")
        return False

    try:
        db.add(OperationLog(machine_id=machine_id, activate=activate))
        db.merge(MachineStatus(machine_id=machine_id, activate=activate, updated_at=now))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info(f"[STATUS] {machine_id}: {previous or '(none)'} → {activate}")
    return True
