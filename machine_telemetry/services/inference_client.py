"""
Inference endpoint client.

POST {ML_ENDPOINT_URL}  body: {"image": <base64>}
Auth: Authorization: Bearer {ML_API_KEY}
Expected response: {"predicted_class": <str>, "result": <bool>}

One httpx.AsyncClient is created at startup and reused for every event.
No retries — a failed call fails that event only.
"""

from typing import Any, Optional

import httpx

from machine_telemetry.exceptions import InferenceError
from machine_telemetry.utils.logger import get_logger

logger = get_logger(__name__)


class InferenceClient:
    def __init__(
        self,
        endpoint_url: str,
        api_key: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint_url = endpoint_url
        kwargs = {"headers": {"Authorization": f"Bearer {api_key}"}}
        if timeout is not None:
            kwargs["timeout"] = timeout
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**kwargs)

    async def classify(self, image_base64: str) -> Any:
        """
        Send one image for classification and return the decoded JSON body.
        Raises InferenceError on transport errors, non-2xx and non-JSON bodies.
        """
        try:
            response = await self._client.post(self.endpoint_url, json={"image": image_base64})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise InferenceError(
                f"Inference endpoint returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise InferenceError(f"Inference request failed: {e!r}") from e

        logger.debug(f"[INFERENCE] HTTP {response.status_code} ({len(response.content)} bytes)")
        try:
            return response.json()
        except ValueError as e:
            raise InferenceError("Inference response is not valid JSON",
                                 status_code=response.status_code) from e

    async def aclose(self):
        await self._client.aclose()
