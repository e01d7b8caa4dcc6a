"""
Decodes raw telemetry payloads and inference responses into validated models.

Raw payloads arrive as bytes or str (one message body) or as an already
decoded dict. Malformed JSON raises json.JSONDecodeError and is treated as
a hard failure by the caller; missing or wrong-kind fields raise
DataQualityError so the event is skipped instead.
"""

import json
from typing import Any, Iterable, Union

from pydantic import ValidationError

from machine_telemetry.exceptions import DataQualityError
from machine_telemetry.schemas.telemetry import InferenceResult, TelemetryEvent
from machine_telemetry.services.outcome import SkipReason

RawPayload = Union[bytes, bytearray, str, dict]

ACTIVATE_VALUES = ("0", "1")


def decode_payload(raw: RawPayload) -> Any:
    """Parse one message body. Dicts pass through untouched."""
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return json.loads(raw)


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}" for err in exc.errors()
    )


def parse_telemetry_event(data: Any, required: Iterable[str] = ()) -> TelemetryEvent:
    """
    Validate a decoded payload. `required` names optional TelemetryEvent
    fields the current handler mode cannot do without.
    """
    if not isinstance(data, dict):
        raise DataQualityError(SkipReason.INVALID_PAYLOAD.value,
                               f"payload is a JSON {type(data).__name__}, expected an object")
    try:
        event = TelemetryEvent.model_validate(data)
    except ValidationError as exc:
        raise DataQualityError(SkipReason.INVALID_PAYLOAD.value, _describe(exc)) from exc

    missing = [name for name in required if getattr(event, name) is None]
    if missing:
        raise DataQualityError(SkipReason.INVALID_PAYLOAD.value, f"missing {', '.join(missing)}")

    if "activate" in required and event.activate not in ACTIVATE_VALUES:
        raise DataQualityError(SkipReason.INVALID_PAYLOAD.value,
                               f"activate must be one of {ACTIVATE_VALUES}, got {event.activate!r}")
    return event


def parse_inference_result(body: Any) -> InferenceResult:
    try:
        return InferenceResult.model_validate(body)
    except ValidationError as exc:
        raise DataQualityError(SkipReason.INVALID_INFERENCE_RESPONSE.value, _describe(exc)) from exc
