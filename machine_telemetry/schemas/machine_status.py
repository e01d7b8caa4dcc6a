from pydantic import BaseModel
from datetime import datetime


class MachineStatusOut(BaseModel):
    machine_id: str
    activate: str
    updated_at: datetime

    class Config:
        from_attributes = True
