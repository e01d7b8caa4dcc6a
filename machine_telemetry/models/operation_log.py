"""
Operation log table.
One append-only row per recorded machine state transition.
Never updated or deleted by the handler.
"""

from sqlalchemy import Column, Integer, String, DateTime, func
from machine_telemetry.database import Base


class OperationLog(Base):
    __tablename__ = "OperationLogs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    machine_id = Column(String(100), nullable=False, index=True)
    activate = Column(String(1), nullable=False)          # "0" | "1"
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)

    def __repr__(self):
        return f"<OperationLog {self.id} machine={self.machine_id} activate={self.activate}>"
