"""Data models for the weekly order form of the farm."""

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tilleuls_scraper.config import DEFAULT_UNIT


class Item(BaseModel):
    """A product that can be ordered, with its buying unit and price."""

    model_config = ConfigDict(frozen=True)

    title: str
    unit: str = DEFAULT_UNIT
    price: float = Field(ge=0)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("item title must not be blank")
        return value

    @property
    def amount(self) -> Decimal:
        """Price as an exact monetary quantity.

        Built from the shortest representation of the float, so 1.1 becomes
        Decimal("1.1") rather than its binary approximation.
        """
        return Decimal(repr(self.price))


class Category(BaseModel):
    """A titled group of items, in the order they appear in the spreadsheet."""

    model_config = ConfigDict(frozen=True)

    title: str
    items: tuple[Item, ...] = ()

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("category title must not be blank")
        return value


class Catalog(BaseModel):
    """One successfully parsed order form."""

    model_config = ConfigDict(frozen=True)

    categories: tuple[Category, ...] = ()

    @property
    def item_count(self) -> int:
        return sum(len(category.items) for category in self.categories)


class CellKind(str, Enum):
    """Type of a spreadsheet cell, independent of its formatting."""

    TEXT = "text"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    EMPTY = "empty"
    ERROR = "error"


class Cell(BaseModel):
    """A single positional cell of a spreadsheet row."""

    model_config = ConfigDict(frozen=True)

    kind: CellKind
    value: Any = None


# A spreadsheet row, cells in column order
RawRow = tuple[Cell, ...]


class LandingPage(BaseModel):
    """The farm landing page as fetched over HTTP."""

    url: str
    etag: str | None = None
    text: str


class FetchResult(BaseModel):
    """Outcome of one conditional retrieval of the order form.

    When ``changed`` is false the landing page still carries the previous
    ETag and nothing else was downloaded, so ``link`` and ``catalog`` are None.
    """

    changed: bool
    etag: str | None = None
    link: str | None = None
    catalog: Catalog | None = None
