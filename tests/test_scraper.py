"""Tests for the conditional retrieval of the order form."""

import httpx
import pytest

from tilleuls_scraper.errors import InvalidFileType, NetworkError, NoDataFound
from tilleuls_scraper.scraper import TilleulsScraper, is_unchanged

LANDING_URL = "https://farm.test/"
FORM_URL = "https://files.test/ugd/bon-de-commande.xlsx"
PAGE = f'<html><body><a href="{FORM_URL}">Bon de commande</a></body></html>'


class FarmSite:
    """Request handler serving the landing page and the order form."""

    def __init__(self, workbook: bytes, page: str = PAGE, etag: str | None = '"v1"') -> None:
        self.workbook = workbook
        self.page = page
        self.etag = etag
        self.requests: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        if url == LANDING_URL:
            headers = {"ETag": self.etag} if self.etag is not None else {}
            return httpx.Response(200, headers=headers, html=self.page)
        if url.endswith(".xlsx"):
            return httpx.Response(200, content=self.workbook)
        return httpx.Response(404)


@pytest.fixture
def site(build_workbook):
    return FarmSite(build_workbook())


@pytest.fixture
def scraper(site, mock_client):
    with TilleulsScraper(landing_url=LANDING_URL, client=mock_client(site)) as scraper:
        yield scraper


@pytest.mark.parametrize(
    ("previous", "current", "expected"),
    [
        ('"v1"', '"v1"', True),
        ('"v1"', '"v2"', False),
        (None, '"v1"', False),
        ('"v1"', None, False),
        (None, None, False),
    ],
)
def test_is_unchanged(previous, current, expected):
    assert is_unchanged(previous, current) is expected


def test_first_retrieval(scraper, site):
    result = scraper.retrieve_catalog()

    assert result.changed
    assert result.etag == '"v1"'
    assert result.link == FORM_URL
    assert [category.title for category in result.catalog.categories] == ["Fruits", "Légumes"]
    assert site.requests == [LANDING_URL, FORM_URL]


def test_same_etag_twice(scraper, site):
    first = scraper.retrieve_catalog()
    second = scraper.retrieve_catalog(first.etag)

    assert not second.changed
    assert second.etag == first.etag
    assert second.catalog is None
    assert second.link is None
    assert site.requests == [LANDING_URL, FORM_URL, LANDING_URL]


def test_new_etag(scraper, site):
    first = scraper.retrieve_catalog()
    site.etag = '"v2"'
    second = scraper.retrieve_catalog(first.etag)

    assert second.changed
    assert second.etag == '"v2"'
    assert second.catalog == first.catalog


def test_missing_etag_always_refetches(scraper, site):
    site.etag = None

    first = scraper.retrieve_catalog()
    second = scraper.retrieve_catalog(first.etag)

    assert first.etag is None
    assert second.changed
    assert site.requests == [LANDING_URL, FORM_URL, LANDING_URL, FORM_URL]


def test_missing_etag_with_previous_token(scraper, site):
    site.etag = None
    assert scraper.retrieve_catalog('"v1"').changed


def test_no_link(scraper, site):
    site.page = '<html><body><a href="/conditions.pdf">CGV</a></body></html>'

    with pytest.raises(NoDataFound):
        scraper.retrieve_catalog()
    assert site.requests == [LANDING_URL]


def test_relative_link(scraper, site):
    site.page = '<a href="/files/old.xlsx">old</a><a href="files/form.xlsx">new</a>'

    result = scraper.retrieve_catalog()

    assert result.link == "https://farm.test/files/form.xlsx"
    assert site.requests == [LANDING_URL, "https://farm.test/files/form.xlsx"]


def test_invalid_spreadsheet(scraper, site):
    site.workbook = b"<html>Page introuvable</html>"

    with pytest.raises(InvalidFileType):
        scraper.retrieve_catalog()


def test_landing_page_error_status(mock_client):
    client = mock_client(lambda request: httpx.Response(503))
    scraper = TilleulsScraper(landing_url=LANDING_URL, client=client)

    with pytest.raises(NetworkError) as exc_info:
        scraper.retrieve_catalog('"v1"')
    assert exc_info.value.url == LANDING_URL
    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


def test_landing_page_connection_error(mock_client):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    scraper = TilleulsScraper(landing_url=LANDING_URL, client=mock_client(handler))

    with pytest.raises(NetworkError):
        scraper.retrieve_catalog()


def test_spreadsheet_error_status(site, mock_client):
    def handler(request):
        if str(request.url) == FORM_URL:
            return httpx.Response(404)
        return site(request)

    scraper = TilleulsScraper(landing_url=LANDING_URL, client=mock_client(handler))

    with pytest.raises(NetworkError) as exc_info:
        scraper.retrieve_catalog()
    assert exc_info.value.url == FORM_URL


def test_supplied_client_is_not_closed(site, mock_client):
    client = mock_client(site)
    with TilleulsScraper(landing_url=LANDING_URL, client=client):
        pass
    assert not client.is_closed


def test_default_client():
    scraper = TilleulsScraper(timeout=5.0)
    try:
        assert scraper.client.timeout == httpx.Timeout(5.0)
        assert "Mozilla" in scraper.client.headers["User-Agent"]
    finally:
        scraper.close()
    assert scraper.client.is_closed
