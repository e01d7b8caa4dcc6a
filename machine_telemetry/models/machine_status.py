"""
Current machine status table.
One row per machine holding the most recently observed activate state.
Upserted by status_service when a transition is detected.
"""

from sqlalchemy import Column, String, DateTime
from machine_telemetry.database import Base


class MachineStatus(Base):
    __tablename__ = "CurrentMachineStatus"

    machine_id = Column(String(100), primary_key=True)
    activate = Column(String(1), nullable=False)          # "0" | "1"
    updated_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<MachineStatus {self.machine_id} activate={self.activate}>"
