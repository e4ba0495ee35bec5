# ==============================================================================
#  Copyright 2025 Matthew Pounsett <matt@conundrum.com>
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.
# ==============================================================================
"""Conditional retrieval of the farm order form using HTTPX."""

import logging

import httpx

from tilleuls_scraper.config import (
    DEFAULT_TIMEOUT,
    LANDING_PAGE_URL,
    SPREADSHEET_EXTENSION,
    USER_AGENT,
)
from tilleuls_scraper.errors import NetworkError, NoDataFound
from tilleuls_scraper.links import extract_spreadsheet_link, resolve_link
from tilleuls_scraper.models import FetchResult, LandingPage
from tilleuls_scraper.order_form import parse_catalog

logger = logging.getLogger(__name__)


def is_unchanged(previous_etag: str | None, etag: str | None) -> bool:
    """Return True if both ETags are known and equal.

    A missing ETag on either side never counts as unchanged.
    """
    return previous_etag is not None and etag is not None and previous_etag == etag


class TilleulsScraper:
    """Scraper for the order form published on the farm website."""

    def __init__(
        self,
        landing_url: str = LANDING_PAGE_URL,
        client: httpx.Client | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
        extension: str = SPREADSHEET_EXTENSION,
    ) -> None:
        """Initialize the scraper.

        Args:
            landing_url: Page announcing the current order form.
            client: HTTPX client to use. When given, its timeout and transport
                settings apply and ``timeout`` is ignored.
            timeout: Timeout in seconds of the client built by default.
            extension: Suffix of the order form links.
        """
        self.landing_url = landing_url
        self.extension = extension
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def __enter__(self) -> "TilleulsScraper":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close the client."""
        self.close()

    def close(self) -> None:
        """Close the httpx client if it was created by the scraper."""
        if self._owns_client:
            self.client.close()

    def _get(self, url: str) -> httpx.Response:
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("HTTP error fetching %s: %s", url, e)
            raise NetworkError(url, f"HTTP status {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Request error fetching %s: %s", url, e)
            raise NetworkError(url, f"request failed: {e}") from e
        return response

    def fetch_landing_page(self) -> LandingPage:
        """Fetch the landing page and its ETag.

        Raises:
            NetworkError: The page could not be retrieved.
        """
        response = self._get(self.landing_url)
        etag = response.headers.get("etag")
        logger.debug("Landing page ETag: %s", etag)
        return LandingPage(url=str(response.url), etag=etag, text=response.text)

    def fetch_spreadsheet(self, url: str) -> bytes:
        """Download the order form.

        Raises:
            NetworkError: The file could not be retrieved.
        """
        response = self._get(url)
        logger.debug("Downloaded %d bytes from %s", len(response.content), url)
        return response.content

    def retrieve_catalog(self, previous_etag: str | None = None) -> FetchResult:
        """Retrieve the current catalog unless the landing page is unchanged.

        Args:
            previous_etag: ETag of the landing page at the last successful
                retrieval, None on the first run.

        Returns:
            The outcome. When the landing page still has ``previous_etag``
            no other request is made and no catalog is returned.

        Raises:
            NetworkError: The landing page or the spreadsheet could not be
                downloaded.
            NoDataFound: The landing page has no usable order form link.
            SpreadsheetError: The spreadsheet is not a valid order form.
        """
        page = self.fetch_landing_page()

        if is_unchanged(previous_etag, page.etag):
            logger.info("Landing page unchanged (ETag %s)", page.etag)
            return FetchResult(changed=False, etag=page.etag)

        href = extract_spreadsheet_link(page.text, self.extension)
        if href is None:
            logger.warning("No %s link found on %s", self.extension, page.url)
            raise NoDataFound(f"no {self.extension} link found on {page.url}")

        try:
            link = resolve_link(page.url, href)
        except ValueError as e:
            logger.warning("Unusable link %r on %s: %s", href, page.url, e)
            raise NoDataFound(f"unusable link {href!r} on {page.url}") from e

        logger.info("Order form link: %s", link)
        catalog = parse_catalog(self.fetch_spreadsheet(link))
        return FetchResult(changed=True, etag=page.etag, link=link, catalog=catalog)
