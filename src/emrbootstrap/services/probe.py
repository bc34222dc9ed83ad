"""Reachability checks for the remote resource provider."""

import requests

from emrbootstrap.constants import CONNECT_TIMEOUT_SECONDS, NO_CACHE_HEADERS


class ProbeService:
    """Answers whether a URL can be contacted and its content retrieved."""

    def __init__(self, logger, requests_module=requests, connect_timeout: float = CONNECT_TIMEOUT_SECONDS):
        self.logger = logger
        self.requests = requests_module
        self.connect_timeout = connect_timeout

    def probe(self, url: str) -> bool:
        try:
            with self.requests.get(
                url,
                headers=dict(NO_CACHE_HEADERS),
                timeout=(self.connect_timeout, None),
                stream=True,
            ) as response:
                # Status codes are not inspected; only the transfer matters.
                response.content
            return True
        except (self.requests.RequestException, ValueError) as exc:
            self.logger.error("Could not contact %s: %s", url, exc, exc_info=True)
            return False
