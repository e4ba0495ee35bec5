"""Shared fixtures: order form workbooks built in memory and mocked HTTP."""

import io
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import httpx
import pytest
from openpyxl import Workbook

from tilleuls_scraper.models import RawRow
from tilleuls_scraper.rows import cell_from_value

ASSETS = Path(__file__).parent / "assets"

HEADER_ROWS = [
    ["Ferme des Tilleuls", None, None, None, None],
    ["Bon de commande N°", None, None, None, 12],
    ["Nom :", None, "Téléphone :", None, None],
    ["Produits", "Unité", "Prix vente TTC", "Quantité", "Total"],
]

FOOTER_ROWS = [
    [None, None, None, "TOTAL", 0],
    ["Merci de votre commande", None, None, None, None],
]

# Fruits -> [Fraise], Légumes -> []
SIMPLE_ROWS = [
    ["Fruits", None, None, None, None],
    ["Fraise", "250 gr", 1.0, None, None],
    ["Légumes", None, None, None, None],
]


def make_row(*values: Any) -> RawRow:
    """Build a typed row from plain Python values."""
    return tuple(cell_from_value(value) for value in values)


@pytest.fixture
def row() -> Callable[..., RawRow]:
    return make_row


@pytest.fixture
def build_workbook() -> Callable[..., bytes]:
    """Return a function serializing rows to an xlsx order form."""

    def build(
        rows: Sequence[Sequence[Any]] | None = None,
        sheets: Sequence[str] = ("Commande", "Recap"),
        with_header: bool = True,
        with_footer: bool = True,
    ) -> bytes:
        body = list(rows if rows is not None else SIMPLE_ROWS)
        if with_header:
            body = HEADER_ROWS + body
        if with_footer:
            body = body + FOOTER_ROWS

        workbook = Workbook()
        workbook.remove(workbook.active)
        for name in sheets:
            worksheet = workbook.create_sheet(name)
            if name == "Commande":
                for values in body:
                    worksheet.append(list(values))
            else:
                worksheet.append(["Récapitulatif", None, None])

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return build


@pytest.fixture
def landing_html() -> str:
    return (ASSETS / "page.html").read_text(encoding="utf-8")


@pytest.fixture
def mock_client():
    """Return a function building an HTTPX client around a request handler."""
    clients: list[httpx.Client] = []

    def make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield make

    for client in clients:
        client.close()
