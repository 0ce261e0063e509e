"""HTTP transport for chunk PUTs, built on requests."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Mapping, Optional, Union

import requests
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and body of a completed request.

    Every status is returned as a response, including 4xx and 5xx, so the
    classifier can inspect it.
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    body: Any = None


class ProgressBody:
    """Sized iterable over a payload that reports bytes handed to the socket.

    Having ``__len__`` makes requests send a Content-Length header instead of
    switching to chunked transfer encoding.
    """

    def __init__(
        self,
        data: Union[bytes, bytearray, memoryview],
        callback: ProgressCallback,
        block_size: int = 64 * 1024,
    ) -> None:
        self._data = memoryview(data)
        self._callback = callback
        self._block_size = block_size

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[bytes]:
        sent = 0
        total = len(self._data)
        while sent < total:
            block = self._data[sent : sent + self._block_size].tobytes()
            sent += len(block)
            yield block
            self._callback(sent)


class RequestsTransport:
    """Issues PUT requests with a shared requests.Session."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Union[float, tuple] = (10, 120),
    ):
        """Initialize the transport.

        Args:
            session: Session to reuse; a new one is created if omitted
            timeout: requests timeout, either a float or (connect, read)
        """
        self.session = session or requests.Session()
        self.timeout = timeout

    def put(
        self,
        url: str,
        body: Optional[Union[bytes, bytearray, memoryview]] = None,
        headers: Optional[Mapping[str, str]] = None,
        on_upload_progress: Optional[ProgressCallback] = None,
    ) -> TransportResponse:
        """PUT ``body`` to ``url``.

        Connection failures and timeouts propagate as requests exceptions.
        """
        data: Any = body
        if body is not None and len(body) > 0 and on_upload_progress is not None:
            data = ProgressBody(body, on_upload_progress)
        elif body is not None:
            data = bytes(body)

        response = self.session.put(
            url, data=data, headers=dict(headers or {}), timeout=self.timeout
        )
        logger.debug(f"PUT {url} -> {response.status_code}")

        return TransportResponse(
            status=response.status_code,
            headers=CaseInsensitiveDict(response.headers),
            body=response.content,
        )

    def close(self) -> None:
        self.session.close()
