"""Tests for the requests-based transport."""

from unittest.mock import MagicMock

import pytest
import requests

from gcs_upload_stream.core.transport import ProgressBody, RequestsTransport


def fake_response(status, headers=None, content=b""):
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.headers = headers or {}
    response.content = content
    return response


def test_progress_body_reports_cumulative_bytes():
    seen = []
    body = ProgressBody(b"x" * 10, seen.append, block_size=4)

    assert len(body) == 10
    assert b"".join(body) == b"x" * 10
    assert seen == [4, 8, 10]


def test_put_streams_body_with_progress():
    session = MagicMock(spec=requests.Session)
    session.put.return_value = fake_response(308, {"Range": "bytes=0-3"})
    transport = RequestsTransport(session=session, timeout=5)
    seen = []

    response = transport.put(
        "http://h", b"abcd", headers={"Content-Range": "bytes 0-3/*"}, on_upload_progress=seen.append
    )

    args, kwargs = session.put.call_args
    assert args == ("http://h",)
    assert isinstance(kwargs["data"], ProgressBody)
    assert kwargs["headers"] == {"Content-Range": "bytes 0-3/*"}
    assert kwargs["timeout"] == 5

    b"".join(kwargs["data"])
    assert seen == [4]
    assert response.status == 308
    assert response.headers["range"] == "bytes=0-3"


def test_put_without_body():
    session = MagicMock(spec=requests.Session)
    session.put.return_value = fake_response(404)
    transport = RequestsTransport(session=session)

    response = transport.put("http://h", None, headers={"Content-Range": "bytes */*"})

    assert session.put.call_args.kwargs["data"] is None
    assert response.status == 404


def test_put_plain_bytes_without_callback():
    session = MagicMock(spec=requests.Session)
    session.put.return_value = fake_response(200)
    RequestsTransport(session=session).put("http://h", bytearray(b"ab"))
    assert session.put.call_args.kwargs["data"] == b"ab"


def test_connection_errors_propagate():
    session = MagicMock(spec=requests.Session)
    session.put.side_effect = requests.exceptions.ConnectionError("refused")
    with pytest.raises(requests.exceptions.ConnectionError):
        RequestsTransport(session=session).put("http://h", b"a")
