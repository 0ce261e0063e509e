"""Shared fixtures: a scripted transport and session factory."""

import pytest
from requests.structures import CaseInsensitiveDict

from gcs_upload_stream.core.session import UploadSession
from gcs_upload_stream.core.storage import MemoryChecksumStore
from gcs_upload_stream.core.transport import TransportResponse

URL = "https://storage.example.com/upload?upload_id=abc"


def make_response(status, **headers):
    """Build a TransportResponse; header names use underscores for dashes."""
    return TransportResponse(
        status=status,
        headers=CaseInsensitiveDict({k.replace("_", "-"): v for k, v in headers.items()}),
        body=b"",
    )


class FakeTransport:
    """Replays scripted responses and records every PUT.

    Each scripted item is a TransportResponse or an exception to raise. Once
    the script runs out ``default`` is returned.
    """

    def __init__(self, responses=None, default=None):
        self.responses = list(responses or [])
        self.default = default if default is not None else make_response(308)
        self.calls = []

    def put(self, url, body=None, headers=None, on_upload_progress=None):
        self.calls.append(
            {
                "url": url,
                "body": bytes(body) if body is not None else None,
                "headers": dict(headers or {}),
            }
        )
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, Exception):
            raise item
        if on_upload_progress is not None and body:
            on_upload_progress(len(body) // 2)
            on_upload_progress(len(body))
        return item


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def store():
    return MemoryChecksumStore()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_session(transport, store, sleeps):
    """Factory building sessions with 4-byte chunks and no real sleeping."""

    def _make(allow_small_chunks=True, **overrides):
        options = {
            "id": "upload-1",
            "url": URL,
            "chunk_size": 4,
            "backoff_delay_millis": 10,
            "backoff_retry_limit": 2,
            "storage": store,
        }
        options.update(overrides)
        return UploadSession(
            options,
            allow_small_chunks=allow_small_chunks,
            transport=transport,
            sleep=sleeps.append,
        )

    return _make
