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
"""In-memory holder of the last good catalog and its landing page ETag."""

import logging
import threading

from tilleuls_scraper.models import Catalog, FetchResult
from tilleuls_scraper.scraper import TilleulsScraper

logger = logging.getLogger(__name__)


class CatalogStore:
    """Last good catalog and the ETag it was retrieved under.

    The retrieval pipeline is stateless; this store is what a long running
    process keeps between two refreshes. A failed refresh leaves it untouched.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self._etag: str | None = None
        self._catalog: Catalog | None = None

    @property
    def etag(self) -> str | None:
        with self._lock:
            return self._etag

    @property
    def catalog(self) -> Catalog | None:
        with self._lock:
            return self._catalog

    def snapshot(self) -> tuple[str | None, Catalog | None]:
        """Return the ETag and catalog as one consistent pair."""
        with self._lock:
            return self._etag, self._catalog

    def compare_and_swap(
        self, expected_etag: str | None, etag: str | None, catalog: Catalog
    ) -> bool:
        """Replace the stored catalog if the stored ETag is still ``expected_etag``.

        Returns:
            True if the store was updated.
        """
        with self._lock:
            if self._etag != expected_etag:
                logger.debug(
                    "Stored ETag moved from %s to %s, not swapping", expected_etag, self._etag
                )
                return False
            self._etag = etag
            self._catalog = catalog
            return True

    def refresh(self, scraper: TilleulsScraper) -> FetchResult:
        """Run one retrieval and keep its catalog if the page changed.

        Concurrent calls are serialized so that two refreshes never race on
        the stored ETag.

        Raises:
            ScraperError: The retrieval failed; the stored catalog is kept.
        """
        with self._refresh_lock:
            previous_etag = self.etag
            result = scraper.retrieve_catalog(previous_etag)
            if result.changed and result.catalog is not None:
                if not self.compare_and_swap(previous_etag, result.etag, result.catalog):
                    logger.warning("Catalog not replaced, the stored ETag changed meanwhile")
                    return result
                logger.info(
                    "Catalog replaced: %d categories, %d items",
                    len(result.catalog.categories),
                    result.catalog.item_count,
                )
            return result
