"""
Inbound telemetry payload and inference response shapes.
Strict field kinds: a number where a string is expected counts as invalid.
"""

from typing import Optional

from pydantic import BaseModel, StrictBool, StrictStr, ValidationError, field_validator


class TelemetryEvent(BaseModel):
    machine_id: StrictStr
    image_base64: Optional[StrictStr] = None    # archive / inference modes
    activate: Optional[StrictStr] = None        # direct mode, "0" | "1"

    @field_validator("image_base64", "activate", mode="wrap")
    @classmethod
    def _wrong_kind_is_missing(cls, value, handler):
        # Modes that need the field reject None afterwards
        try:
            return handler(value)
        except ValidationError:
            return None


class InferenceResult(BaseModel):
    predicted_class: StrictStr
    result: StrictBool

    @property
    def activate(self) -> str:
        return "1" if self.result else "0"
