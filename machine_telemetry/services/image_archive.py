"""
Image archive — stores each classified machine image in Azure Blob Storage.

Path: uploads/{yyyyMMdd}/{on|off}/{machine_id}_{HHmmssfff}[_{predicted_class}].jpg
  on  — predicted_class equals the sentinel label
  off — anything else; the class name is appended to the file name

Uploads overwrite existing blobs and are never retried or rolled back.
"""

import base64
import binascii
from datetime import datetime
from typing import Optional

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings

from machine_telemetry.exceptions import ArchiveError
from machine_telemetry.utils.logger import get_logger

logger = get_logger(__name__)

UPLOAD_PREFIX = "uploads"


def build_blob_path(machine_id: str, predicted_class: str, now: datetime, sentinel_class: str = "class1") -> str:
    is_on = predicted_class == sentinel_class
    folder = "on" if is_on else "off"
    time_part = f"{now:%H%M%S}{now.microsecond // 1000:03d}"
    suffix = "" if is_on else f"_{predicted_class}"
    return f"{UPLOAD_PREFIX}/{now:%Y%m%d}/{folder}/{machine_id}_{time_part}{suffix}.jpg"


def decode_image(image_base64: str) -> bytes:
    try:
        # MIME-style line wrapping is allowed
        return base64.b64decode("".join(image_base64.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ArchiveError(f"image_base64 is not valid base64: {e}") from e


class ImageArchive:
    def __init__(self, container_client: ContainerClient, service_client: Optional[BlobServiceClient] = None):
        self._container = container_client
        self._service = service_client

    @classmethod
    def from_connection_string(cls, connection_string: str, container_name: str) -> "ImageArchive":
        service = BlobServiceClient.from_connection_string(connection_string)
        return cls(service.get_container_client(container_name), service_client=service)

    def upload(self, blob_path: str, data: bytes) -> str:
        try:
            blob_client = self._container.get_blob_client(blob_path)
            blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type="image/jpeg"),
            )
        except AzureError as e:
            raise ArchiveError(f"Blob upload failed: {e}", blob_path=blob_path) from e
        logger.info(f"[ARCHIVE] Uploaded {blob_path} ({len(data)} bytes)")
        return blob_path

    def close(self):
        self._container.close()
        if self._service is not None:
            self._service.close()
