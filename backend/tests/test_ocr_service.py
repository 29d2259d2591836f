"""
Unit Tests for OCR orchestration

Tests the build -> send -> extract -> update pipeline:
- Successful runs persist exactly once and return the persisted text
- Vendor/transport failures abort before persistence
- Malformed vendor bodies degrade instead of failing
- Unknown object keys surface as RecordNotFoundError

Run with: pytest tests/test_ocr_service.py -v
"""

import json

import httpx
import pytest
from unittest.mock import AsyncMock, patch

from ocr.errors import OCRRequestFailedError, RecordNotFoundError
from ocr.services.ocr_service import OCRService, OCRResult
from ocr.services.response_parser import NO_DATA_PLACEHOLDER


IMAGE_URL = "https://bucket.example.com/uploads/chart-1.jpg"
OBJECT_KEY = "uploads/chart-1.jpg"


def spy_update(service: OCRService) -> AsyncMock:
    spy = AsyncMock(side_effect=service.store.update)
    service.store.update = spy
    return spy


class TestPerformOcrSuccess:

    @pytest.mark.asyncio
    async def test_returns_and_persists_text(self, fake_session, make_client, json_response, clova_response):
        client = make_client(lambda request: json_response(clova_response("매출", "1,200", "억원")))
        service = OCRService(fake_session, client=client)
        await service.create_ocr_record(OBJECT_KEY)
        update = spy_update(service)

        result = await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert isinstance(result, OCRResult)
        assert result.text == "매출 1,200 억원"
        assert result.degraded is False
        update.assert_awaited_once_with(OBJECT_KEY, "매출 1,200 억원")

        record = await service.get_ocr_record(OBJECT_KEY)
        assert record.ocr_result == result.text

    @pytest.mark.asyncio
    async def test_request_carries_object_key_as_image_name(self, fake_session, make_client, json_response, clova_response):
        sent = {}

        def handler(request):
            sent["body"] = json.loads(request.content)
            return json_response(clova_response("x"))

        service = OCRService(fake_session, client=make_client(handler))
        await service.create_ocr_record(OBJECT_KEY)

        result = await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        image = sent["body"]["images"][0]
        assert image["url"] == IMAGE_URL
        assert image["name"] == OBJECT_KEY
        assert image["format"] == "jpg"
        assert result.request_id == sent["body"]["requestId"]

    @pytest.mark.asyncio
    async def test_no_fields_persists_placeholder(self, fake_session, make_client, json_response, clova_response):
        service = OCRService(fake_session, client=make_client(lambda request: json_response(clova_response())))
        await service.create_ocr_record(OBJECT_KEY)

        result = await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert result.text == NO_DATA_PLACEHOLDER
        assert result.has_fields is False
        assert fake_session.rows[OBJECT_KEY].ocr_result == NO_DATA_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_malformed_body_degrades(self, fake_session, make_client):
        service = OCRService(
            fake_session,
            client=make_client(lambda request: httpx.Response(200, text="not json at all"))
        )
        await service.create_ocr_record(OBJECT_KEY)
        update = spy_update(service)

        result = await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert result.degraded is True
        assert result.text == ""
        update.assert_awaited_once_with(OBJECT_KEY, "")

    @pytest.mark.asyncio
    async def test_deeply_nested_body_still_updates(self, fake_session, make_client):
        body = '{"images": [{"fields": ' + "[" * 100000 + "]" * 100000 + "}]}"
        service = OCRService(fake_session, client=make_client(lambda request: httpx.Response(200, text=body)))
        await service.create_ocr_record(OBJECT_KEY)
        update = spy_update(service)

        result = await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert result.degraded is True
        update.assert_awaited_once_with(OBJECT_KEY, "")

    @pytest.mark.asyncio
    async def test_to_dict(self, fake_session, make_client, json_response, clova_response):
        service = OCRService(fake_session, client=make_client(lambda request: json_response(clova_response("a"))))
        await service.create_ocr_record(OBJECT_KEY)

        d = (await service.perform_ocr(IMAGE_URL, OBJECT_KEY)).to_dict()

        assert d["object_key"] == OBJECT_KEY
        assert d["text"] == "a"
        assert d["request_id"].startswith("dbdr-")


class TestPerformOcrFailure:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [400, 401, 404, 500, 503])
    async def test_vendor_error_skips_update(self, fake_session, make_client, status_code):
        error_body = '{"code":"0002","message":"Authentication failed"}'
        service = OCRService(
            fake_session,
            client=make_client(lambda request: httpx.Response(status_code, text=error_body))
        )
        await service.create_ocr_record(OBJECT_KEY)
        update = spy_update(service)

        with pytest.raises(OCRRequestFailedError) as exc_info:
            await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert exc_info.value.stage == "vendor"
        assert exc_info.value.status_code == status_code
        assert error_body in str(exc_info.value)
        update.assert_not_awaited()
        assert fake_session.rows[OBJECT_KEY].ocr_result is None

    @pytest.mark.asyncio
    async def test_transport_error_skips_update(self, fake_session, make_client):
        def handler(request):
            raise httpx.ConnectError("Name or service not known", request=request)

        service = OCRService(fake_session, client=make_client(handler))
        await service.create_ocr_record(OBJECT_KEY)
        update = spy_update(service)

        with pytest.raises(OCRRequestFailedError) as exc_info:
            await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert exc_info.value.stage == "transport"
        assert "Name or service not known" in str(exc_info.value)
        update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_vendor_failure_keeps_created_record(self, fake_session, make_client):
        service = OCRService(fake_session, client=make_client(lambda request: httpx.Response(500, text="boom")))
        await service.create_ocr_record(OBJECT_KEY)

        with pytest.raises(OCRRequestFailedError):
            await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        assert OBJECT_KEY in fake_session.rows

    @pytest.mark.asyncio
    async def test_transport_failure_tags_stage(self, fake_session, make_client):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = OCRService(fake_session, client=make_client(handler))
        await service.create_ocr_record(OBJECT_KEY)

        with patch("ocr.services.ocr_service.set_tag") as set_tag:
            with pytest.raises(OCRRequestFailedError):
                await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        set_tag.assert_called_once_with("ocr.stage", "transport")

    @pytest.mark.asyncio
    async def test_vendor_failure_tags_stage(self, fake_session, make_client):
        service = OCRService(fake_session, client=make_client(lambda request: httpx.Response(401, text="denied")))
        await service.create_ocr_record(OBJECT_KEY)

        with patch("ocr.services.ocr_service.set_tag") as set_tag:
            with pytest.raises(OCRRequestFailedError):
                await service.perform_ocr(IMAGE_URL, OBJECT_KEY)

        set_tag.assert_called_once_with("ocr.stage", "vendor")

    @pytest.mark.asyncio
    async def test_unknown_object_key(self, fake_session, make_client, json_response, clova_response):
        service = OCRService(fake_session, client=make_client(lambda request: json_response(clova_response("x"))))

        with pytest.raises(RecordNotFoundError):
            await service.perform_ocr(IMAGE_URL, "never-registered")
