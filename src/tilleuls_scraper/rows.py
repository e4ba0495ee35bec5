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
"""Classification of order form rows.

The order form has no schema. Its author lays it out visually: a bold
section title alone on its row, one priced product per row below it, and a
final row holding the grand total. These helpers recover that layout from
the type of the first few positional cells only:

    column 1   column 2   column 3   column 4   column 5
    Produits   Unité      Prix       Quantité   Total
    Fruits                                              <- category
    Fraise     250 gr     1.0                           <- item
                                     TOTAL              <- terminator
"""

import datetime
import logging
from decimal import Decimal
from enum import Enum
from typing import Any

from openpyxl.utils.datetime import to_excel
from pydantic import BaseModel, ConfigDict

from tilleuls_scraper.config import DEFAULT_UNIT, MIN_ROW_WIDTH, TERMINATOR_TEXT
from tilleuls_scraper.errors import UnexpectedCellContent
from tilleuls_scraper.models import Cell, CellKind, Item, RawRow

logger = logging.getLogger(__name__)

TITLE_COLUMN = 0
UNIT_COLUMN = 1
PRICE_COLUMN = 2
TERMINATOR_COLUMN = 3

# openpyxl data type of cells holding a formula error such as #N/A
ERROR_DATA_TYPE = "e"


class RowKind(str, Enum):
    """What a single row of the order form stands for."""

    CATEGORY = "category"
    ITEM = "item"
    TERMINATOR = "terminator"
    NOISE = "noise"


class ClassifiedRow(BaseModel):
    """A row kind together with what was read from the row."""

    model_config = ConfigDict(frozen=True)

    kind: RowKind
    title: str | None = None
    item: Item | None = None


NOISE = ClassifiedRow(kind=RowKind.NOISE)
TERMINATOR = ClassifiedRow(kind=RowKind.TERMINATOR)


def cell_from_value(value: Any, data_type: str | None = None) -> Cell:
    """Build a typed cell from a value read by openpyxl.

    Args:
        value: The cell value (``cell.value``).
        data_type: The openpyxl data type (``cell.data_type``), used to tell
            formula errors apart from ordinary text.

    Returns:
        The typed cell. Dates and times become numeric, as Excel stores them
        as serial numbers.
    """
    if data_type == ERROR_DATA_TYPE:
        return Cell(kind=CellKind.ERROR, value=value)
    if value is None or (isinstance(value, str) and value == ""):
        return Cell(kind=CellKind.EMPTY)
    # bool is a subclass of int, test it first
    if isinstance(value, bool):
        return Cell(kind=CellKind.BOOLEAN, value=value)
    if isinstance(value, (int, float, Decimal)):
        return Cell(kind=CellKind.NUMERIC, value=float(value))
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time, datetime.timedelta)):
        return Cell(kind=CellKind.NUMERIC, value=float(to_excel(value)))
    if isinstance(value, str):
        return Cell(kind=CellKind.TEXT, value=value)
    return Cell(kind=CellKind.ERROR, value=value)


def is_text(cell: Cell) -> bool:
    """Return True for a text cell with visible content."""
    return cell.kind is CellKind.TEXT and bool(cell.value.strip())


def is_short_row(row: RawRow) -> bool:
    return len(row) < MIN_ROW_WIDTH


def is_end_of_items(row: RawRow) -> bool:
    """Return True if the row is the grand total closing the item list."""
    if len(row) <= TERMINATOR_COLUMN:
        return False
    cell = row[TERMINATOR_COLUMN]
    return cell.kind is CellKind.TEXT and cell.value == TERMINATOR_TEXT


def read_category_row(row: RawRow) -> str | None:
    """Return the category title if the row is a section header.

    A section header has a title and nothing in the unit and price columns.
    """
    if (
        is_text(row[TITLE_COLUMN])
        and row[UNIT_COLUMN].kind is CellKind.EMPTY
        and row[PRICE_COLUMN].kind is CellKind.EMPTY
    ):
        return row[TITLE_COLUMN].value
    return None


def read_item_row(row: RawRow, row_number: int | None = None) -> Item | None:
    """Return the item described by the row, if it is a priced product.

    Args:
        row: The row to read.
        row_number: Spreadsheet row number, only used in error messages.

    Returns:
        The item, or None if the row has no title or no price.

    Raises:
        UnexpectedCellContent: The row has a title and something other than
            a non-negative number in the price column.
    """
    title_cell = row[TITLE_COLUMN]
    price_cell = row[PRICE_COLUMN]

    if not is_text(title_cell) or price_cell.kind is CellKind.EMPTY:
        return None

    if price_cell.kind is not CellKind.NUMERIC:
        logger.warning(
            "Unexpected %s price %r for item %r",
            price_cell.kind.value,
            price_cell.value,
            title_cell.value,
        )
        raise UnexpectedCellContent(
            f"price of {title_cell.value!r} is {price_cell.kind.value}, not a number",
            row_number,
        )
    if price_cell.value < 0:
        logger.warning("Negative price %s for item %r", price_cell.value, title_cell.value)
        raise UnexpectedCellContent(
            f"price of {title_cell.value!r} is negative ({price_cell.value})", row_number
        )

    unit_cell = row[UNIT_COLUMN]
    unit = unit_cell.value if unit_cell.kind is CellKind.TEXT else DEFAULT_UNIT
    return Item(title=title_cell.value, unit=unit, price=price_cell.value)


def classify_row(row: RawRow, row_number: int | None = None) -> ClassifiedRow:
    """Decide what a row of the order form stands for.

    The terminator test comes first: the total row must stop the scan even
    though it looks like neither a category nor an item.

    Raises:
        UnexpectedCellContent: See read_item_row.
    """
    if is_short_row(row):
        return NOISE
    if is_end_of_items(row):
        return TERMINATOR

    title = read_category_row(row)
    if title is not None:
        return ClassifiedRow(kind=RowKind.CATEGORY, title=title)

    item = read_item_row(row, row_number)
    if item is not None:
        return ClassifiedRow(kind=RowKind.ITEM, item=item)

    return NOISE
