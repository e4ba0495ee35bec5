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
"""Discovery of the order form link on the farm landing page."""

import logging

from bs4 import BeautifulSoup, ParserRejectedMarkup
from furl import furl

from tilleuls_scraper.config import SPREADSHEET_EXTENSION

logger = logging.getLogger(__name__)


def find_links(html: str | bytes) -> list[str]:
    """Return the href of every anchor of the document, in document order."""
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as e:
        logger.warning("Could not parse landing page: %s", e)
        return []

    return [anchor["href"] for anchor in soup.find_all("a", href=True)]


def extract_spreadsheet_link(
    html: str | bytes, extension: str = SPREADSHEET_EXTENSION
) -> str | None:
    """Find the link to the current order form.

    The farm adds a new link each time the form is updated without always
    removing the older ones, so the last matching link of the page wins.

    Args:
        html: The landing page markup.
        extension: Suffix the link target must end with.

    Returns:
        The href as written in the page, or None if no anchor matches.
    """
    candidates = [href for href in find_links(html) if href.endswith(extension)]
    if not candidates:
        logger.debug("No link ending with %s", extension)
        return None

    if len(candidates) > 1:
        logger.debug("Found %d candidate links, using the last one", len(candidates))
    return candidates[-1]


def resolve_link(base_url: str, href: str) -> str:
    """Resolve a link found on a page against the page URL.

    Absolute links are returned unchanged, so their query string keeps its
    original encoding.
    """
    if furl(href).scheme:
        return href
    return str(furl(base_url).join(href))
