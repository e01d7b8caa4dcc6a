"""Unit tests for the inference endpoint client."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import httpx
import pytest
from conftest import ML_URL
from machine_telemetry.exceptions import InferenceError
from machine_telemetry.services.inference_client import InferenceClient


class TestInferenceClient:
    @pytest.mark.asyncio
    async def test_posts_image_with_bearer_token(self, inference_client, inference_stub):
        inference_stub.queue(200, {"predicted_class": "class1", "result": True})

        body = await inference_client.classify("aGk=")

        assert body == {"predicted_class": "class1", "result": True}
        request = inference_stub.requests[0]
        assert request.method == "POST"
        assert str(request.url) == ML_URL
        assert request.headers["Authorization"] == "Bearer test-key"
        assert inference_stub.sent_bodies == [{"image": "aGk="}]

    @pytest.mark.asyncio
    async def test_server_error_raises(self, inference_client, inference_stub):
        inference_stub.queue(500, {"error": "boom"})

        with pytest.raises(InferenceError) as exc:
            await inference_client.classify("aGk=")
        assert exc.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self, inference_client, inference_stub):
        inference_stub.queue(200, b"<html>gateway</html>")

        with pytest.raises(InferenceError):
            await inference_client.classify("aGk=")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = InferenceClient(ML_URL, "k", transport=httpx.MockTransport(refuse))
        with pytest.raises(InferenceError):
            await client.classify("aGk=")
        await client.aclose()
