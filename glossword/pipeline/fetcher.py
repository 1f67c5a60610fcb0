from __future__ import annotations

import logging
from urllib.parse import quote, quote_plus

import httpx

from glossword.pipeline.errors import NetworkError, NotFoundError
from glossword.pipeline.types import Mode, RawDocument
from glossword.settings import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFINITION_BASE_URL = "https://www.thefreedictionary.com/"
ETYMOLOGY_BASE_URL = "https://www.etymonline.com/word/"


def build_lookup_url(
    word: str,
    mode: Mode,
    *,
    definition_base_url: str = DEFINITION_BASE_URL,
    etymology_base_url: str = ETYMOLOGY_BASE_URL,
) -> str:
    # The two sites disagree on how a space in a phrase is written
    if mode is Mode.ETYMOLOGY:
        return etymology_base_url + quote(word, safe="")
    return definition_base_url + quote_plus(word, safe="")


class DictionaryFetcher:
    """Single-shot HTTP client for the definition and etymology sites.

    A lookup is run by hand, so there is no retry: network failures surface
    immediately and the user can re-run the command.
    """

    def __init__(
        self,
        *,
        timeout_s: float = 15.0,
        user_agent: str = DEFAULT_USER_AGENT,
        definition_base_url: str = DEFINITION_BASE_URL,
        etymology_base_url: str = ETYMOLOGY_BASE_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._definition_base_url = definition_base_url
        self._etymology_base_url = etymology_base_url
        self._client = httpx.Client(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> DictionaryFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def url_for(self, word: str, mode: Mode) -> str:
        return build_lookup_url(
            word,
            mode,
            definition_base_url=self._definition_base_url,
            etymology_base_url=self._etymology_base_url,
        )

    def fetch(self, word: str, mode: Mode) -> RawDocument:
        url = self.url_for(word, mode)
        logger.info("Fetching %s", url)
        try:
            resp = self._client.get(url)
        except httpx.RequestError as e:
            raise NetworkError(f"Failed to complete HTTP request to {url}: {e}") from e

        if not resp.is_success:
            logger.debug("GET %s returned %d", url, resp.status_code)
            raise NotFoundError(word, url)

        html = resp.text
        if not html.strip():
            raise NotFoundError(word, url)

        return RawDocument(html=html, source_url=str(resp.url))
