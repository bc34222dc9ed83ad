"""Authenticated retrieval of seed resources from the remote provider."""

import base64
import io
from typing import Iterator

import requests

from emrbootstrap.constants import CONNECT_TIMEOUT_SECONDS, FORM_CONTENT_TYPE, NO_CACHE_HEADERS
from emrbootstrap.errors import AuthFailure, RemoteError, TransportFailure

HTTP_UNAUTHORIZED = 401
HTTP_INTERNAL_ERROR = 500


def _b64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def encode_credentials(username: str, password: str) -> str:
    """Builds the form body; the Base64 text is sent without further escaping."""
    return f"username={_b64(username)}&password={_b64(password)}"


class ResponseStream(io.RawIOBase):
    """Readable binary stream over a response body, owned by the caller.

    Closing the stream releases the connection.
    """

    CHUNK_SIZE = 8192

    def __init__(self, response):
        super().__init__()
        self.response = response
        self._chunks: Iterator[bytes] = response.iter_content(chunk_size=self.CHUNK_SIZE)
        self._buffer = b""

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._buffer:
            chunk = next(self._chunks, None)
            if chunk is None:
                return 0
            self._buffer = chunk

        size = min(len(buffer), len(self._buffer))
        buffer[:size] = self._buffer[:size]
        self._buffer = self._buffer[size:]
        return size

    def close(self):
        if not self.closed:
            try:
                self.response.close()
            finally:
                super().close()


class FetchService:
    """Opens authenticated POST requests and classifies the outcome."""

    def __init__(self, logger, requests_module=requests, connect_timeout: float = CONNECT_TIMEOUT_SECONDS):
        self.logger = logger
        self.requests = requests_module
        self.connect_timeout = connect_timeout

    def fetch(self, url: str, username: str, password: str) -> ResponseStream:
        """Returns the response body of a credentialed POST to ``url``.

        Raises AuthFailure on 401, RemoteError on 500 and TransportFailure
        when the request cannot be made. Every other status, including
        redirects, is returned as a stream the caller must close.
        """
        headers = dict(NO_CACHE_HEADERS)
        headers["Content-Type"] = FORM_CONTENT_TYPE

        try:
            response = self.requests.post(
                url,
                data=encode_credentials(username, password),
                headers=headers,
                timeout=(self.connect_timeout, None),
                stream=True,
                allow_redirects=False,
            )
        except self.requests.RequestException as exc:
            raise TransportFailure(f"Could not fetch {url}: {exc}") from exc

        self.logger.info(
            "Http response message: %s, Code: %s", response.reason, response.status_code
        )

        if response.status_code == HTTP_UNAUTHORIZED:
            response.close()
            raise AuthFailure("Invalid username or password")
        if response.status_code == HTTP_INTERNAL_ERROR:
            response.close()
            raise RemoteError("An error occurred on the production server")

        if 300 <= response.status_code < 400:
            self.logger.warning(
                "Redirect response (%s) from %s treated as content",
                response.status_code,
                url,
            )

        return ResponseStream(response)
