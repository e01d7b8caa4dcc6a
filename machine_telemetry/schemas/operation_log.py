from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class OperationLogOut(BaseModel):
    id: int
    machine_id: str
    activate: str
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
