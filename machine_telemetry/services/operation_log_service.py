"""
Unconditional operation log writes.
Used by the inference mode (sentinel class only) and the direct mode.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from machine_telemetry.models.operation_log import OperationLog
from machine_telemetry.utils.logger import get_logger

logger = get_logger(__name__)


async def insert_operation_log(db: Session, machine_id: str, activate: str):
    """Append one OperationLogs row. Always commits immediately."""
    try:
        db.add(OperationLog(machine_id=machine_id, activate=activate))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    logger.info(f"[OPLOG] Inserted machine_id={machine_id} activate={activate}")
