"""
Telemetry event handler — one procedure per message, three modes.

  archive   : decode → classify → validate → archive image → change detection → conditional upsert
  inference : decode → classify → validate → log row if predicted_class is the sentinel
  direct    : decode → log row from the payload's own activate flag

Events in a batch run one after another. Each event opens its own DB
session from the shared factory; the HTTP and blob clients are shared.
A bad event never stops the rest of the batch.
"""

from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import sessionmaker

from machine_telemetry.config import Settings
from machine_telemetry.exceptions import DataQualityError
from machine_telemetry.schemas.telemetry import InferenceResult, TelemetryEvent
from machine_telemetry.services.event_parser import (
    RawPayload,
    decode_payload,
    parse_inference_result,
    parse_telemetry_event,
)
from machine_telemetry.services.image_archive import ImageArchive, build_blob_path, decode_image
from machine_telemetry.services.inference_client import InferenceClient
from machine_telemetry.services.operation_log_service import insert_operation_log
from machine_telemetry.services.outcome import BatchSummary, EventOutcome, SkipReason, Stage
from machine_telemetry.services.status_service import apply_status_change
from machine_telemetry.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_FIELDS = {
    "archive": ("image_base64",),
    "inference": ("image_base64",),
    "direct": ("activate",),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TelemetryEventHandler:
    def __init__(
        self,
        session_factory: sessionmaker,
        mode: str = "archive",
        inference_client: Optional[InferenceClient] = None,
        image_archive: Optional[ImageArchive] = None,
        sentinel_class: str = "class1",
        clock: Callable[[], datetime] = utc_now,
    ):
        if mode not in REQUIRED_FIELDS:
            raise ValueError(f"Unknown handler mode: {mode!r}")
        if mode in ("archive", "inference") and inference_client is None:
            raise ValueError(f"{mode} mode needs an inference client")
        if mode == "archive" and image_archive is None:
            raise ValueError("archive mode needs an image archive")

        self.session_factory = session_factory
        self.mode = mode
        self.inference_client = inference_client
        self.image_archive = image_archive
        self.sentinel_class = sentinel_class
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, session_factory: sessionmaker,
                      inference_client: Optional[InferenceClient] = None,
                      image_archive: Optional[ImageArchive] = None) -> "TelemetryEventHandler":
        return cls(
            session_factory=session_factory,
            mode=settings.HANDLER_MODE,
            inference_client=inference_client,
            image_archive=image_archive,
            sentinel_class=settings.SENTINEL_CLASS,
        )

    async def handle_batch(self, raw_events: Iterable[RawPayload]) -> BatchSummary:
        summary = BatchSummary()
        for raw in raw_events:
            summary.outcomes.append(await self.handle_event(raw))
        logger.info(
            f"Batch done: {len(summary.outcomes)} events | processed={summary.processed} "
            f"skipped={summary.skipped} failed={summary.failed}"
        )
        return summary

    async def handle_event(self, raw: RawPayload) -> EventOutcome:
        stage = Stage.DECODE
        machine_id = None
        try:
            event = parse_telemetry_event(decode_payload(raw), REQUIRED_FIELDS[self.mode])
            machine_id = event.machine_id
            logger.info(f"[DECODE] Event for machine {machine_id} ({self.mode} mode)")

            if self.mode == "direct":
                stage = Stage.PERSIST
                with self.session_factory() as db:
                    await insert_operation_log(db, machine_id, event.activate)
                return EventOutcome.processed(machine_id, changed=True)

            stage = Stage.INFERENCE
            result = await self._classify(event)

            if self.mode == "inference":
                stage = Stage.PERSIST
                return await self._record_sentinel(event, result)

            stage = Stage.ARCHIVE
            now = self.clock()
            blob_path = build_blob_path(machine_id, result.predicted_class, now, self.sentinel_class)
            self.image_archive.upload(blob_path, decode_image(event.image_base64))

            stage = Stage.PERSIST
            with self.session_factory() as db:
                changed = await apply_status_change(db, machine_id, result.activate, now)
            return EventOutcome.processed(
                machine_id, changed=changed,
                predicted_class=result.predicted_class, blob_path=blob_path,
            )

        except DataQualityError as e:
            logger.warning(f"[{stage.value.upper()}] Skipped event ({e.reason}): {e}")
            return EventOutcome.skipped(SkipReason(e.reason), str(e), machine_id)
        except Exception as e:
            logger.error(f"[{stage.value.upper()}] Error processing telemetry event "
                         f"(machine={machine_id}): {e}", exc_info=True)
            return EventOutcome.failed(stage, str(e), machine_id)

    async def _classify(self, event: TelemetryEvent) -> InferenceResult:
        body = await self.inference_client.classify(event.image_base64)
        result = parse_inference_result(body)
        logger.info(f"[INFERENCE] machine {event.machine_id}: "
                    f"predicted_class={result.predicted_class} result={result.result}")
        return result

    async def _record_sentinel(self, event: TelemetryEvent, result: InferenceResult) -> EventOutcome:
        if result.predicted_class != self.sentinel_class:
            logger.info(f"[OPLOG] {event.machine_id}: class {result.predicted_class} — not logged")
            return EventOutcome.processed(event.machine_id, changed=False,
                                          predicted_class=result.predicted_class)

        with self.session_factory() as db:
            await insert_operation_log(db, event.machine_id, result.activate)
        return EventOutcome.processed(event.machine_id, changed=True,
                                      predicted_class=result.predicted_class)
