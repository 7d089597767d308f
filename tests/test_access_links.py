"""Tests for the access-link issuer."""

from datetime import datetime, timedelta, timezone

import pytest

from docvault.core.exceptions import NotFoundError, TransportError
from docvault.services.access_links import AccessLinkService


@pytest.fixture
def stored(blobs, make_record):
    record = make_record("scan.pdf")
    blobs.objects[record.storage_path] = (b"%PDF", "application/pdf")
    return record


@pytest.mark.asyncio
class TestAccessLinks:
    async def test_default_ttl(self, blobs, stored):
        url = await AccessLinkService(blobs).get_access_url(stored.storage_path)
        assert "ttl=3600" in url

    async def test_each_call_signs_again(self, blobs, stored):
        service = AccessLinkService(blobs)
        first = await service.get_access_url(stored.storage_path)
        second = await service.get_access_url(stored.storage_path)
        assert first != second
        assert blobs.calls == ["sign", "sign"]

    async def test_missing_object(self, blobs):
        with pytest.raises(NotFoundError):
            await AccessLinkService(blobs).get_access_url("nobody/none.txt")

    async def test_transport_failure_propagates(self, blobs, stored):
        blobs.failures.fail("sign", TransportError("storage offline"))
        with pytest.raises(TransportError):
            await AccessLinkService(blobs).get_access_url(stored.storage_path)

    async def test_issue_carries_expiry(self, blobs, stored):
        before = datetime.now(timezone.utc)
        link = await AccessLinkService(blobs, ttl_seconds=60).issue(stored)
        after = datetime.now(timezone.utc)

        assert link.file_name == "scan.pdf"
        assert "ttl=60" in link.url
        assert before + timedelta(seconds=60) <= link.expires_at <= after + timedelta(seconds=60)

    async def test_attach_returns_copy(self, blobs, stored):
        viewed = await AccessLinkService(blobs).attach(stored)
        assert viewed.signed_url.startswith("memory://documents/")
        assert viewed.id == stored.id
        assert stored.signed_url is None
