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
"""Decoding of the weekly order form spreadsheet into a Catalog."""

import io
import logging
import os
from collections.abc import Iterable, Iterator
from typing import BinaryIO
from xml.etree.ElementTree import ParseError
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet
from pydantic import BaseModel, ConfigDict

from tilleuls_scraper.config import COLUMNS_ORDER, HEADER_MARKER, ORDER_SHEET_NAME, RECAP_SHEET_NAME
from tilleuls_scraper.errors import InvalidFileType, OpeningError
from tilleuls_scraper.models import Catalog, Category, CellKind, Item, RawRow
from tilleuls_scraper.rows import RowKind, cell_from_value, classify_row

logger = logging.getLogger(__name__)

SpreadsheetSource = str | os.PathLike | bytes | BinaryIO

# Row number and row, read once each in sheet order
RowCursor = Iterator[tuple[int, RawRow]]


class NoCategoryYet(BaseModel):
    """Parse state before the first category row."""

    model_config = ConfigDict(frozen=True)


class InCategory(BaseModel):
    """Parse state once a category row was read; items go to ``index``."""

    model_config = ConfigDict(frozen=True)

    index: int


ParseState = NoCategoryYet | InCategory


def open_workbook(source: SpreadsheetSource) -> Workbook:
    """Open an xlsx workbook with cached formula results as cell values.

    Args:
        source: Path to the file, its raw bytes, or a seekable binary stream.

    Raises:
        OpeningError: The payload is not a readable xlsx workbook.
        OSError: A local file could not be found or read.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        return load_workbook(source, data_only=True)
    except (FileNotFoundError, IsADirectoryError, PermissionError):
        raise
    # openpyxl reports zips that hold no workbook part as OSError, and some
    # malformed parts (such as an empty chartsheet) as AttributeError or TypeError
    except (
        BadZipFile,
        InvalidFileException,
        KeyError,
        ParseError,
        ValueError,
        OSError,
        AttributeError,
        TypeError,
    ) as e:
        logger.warning("Cannot open workbook: %s", e)
        raise OpeningError(f"cannot open workbook: {e}") from e


def read_rows(worksheet: Worksheet) -> Iterator[RawRow]:
    """Yield the rows of a worksheet as typed cells, top to bottom."""
    for cells in worksheet.iter_rows():
        yield tuple(cell_from_value(cell.value, cell.data_type) for cell in cells)


def is_header_row(row: RawRow) -> bool:
    return bool(row) and row[0].kind is CellKind.TEXT and row[0].value == HEADER_MARKER


def has_product_columns(row: RawRow) -> bool:
    """Return True if the row starts with the product table column names."""
    if len(row) < len(COLUMNS_ORDER):
        return False
    return all(
        cell.kind is CellKind.TEXT and cell.value == name
        for cell, name in zip(row, COLUMNS_ORDER)
    )


def find_header(cursor: RowCursor) -> bool:
    """Advance the cursor past the header marker row."""
    for row_number, row in cursor:
        if is_header_row(row):
            logger.debug("Found header marker on row %d", row_number)
            return True
    return False


def find_product_columns(cursor: RowCursor) -> bool:
    """Advance the cursor past the product table column names."""
    for row_number, row in cursor:
        if has_product_columns(row):
            logger.debug("Found product columns on row %d", row_number)
            return True
    return False


def parse_rows(rows: Iterable[RawRow]) -> Catalog:
    """Build a Catalog from the rows of the order form sheet.

    Rows are consumed once, in order: first up to the header marker, then up
    to the column names, then through the product table until the total row
    or the end of the sheet. Items listed before any category are dropped.

    Args:
        rows: The sheet rows, top to bottom.

    Returns:
        The catalog, which may hold no category at all.

    Raises:
        InvalidFileType: The header marker or the column names are missing.
        UnexpectedCellContent: An item row has an unusable price.
    """
    cursor: RowCursor = enumerate(rows, start=1)

    if not find_header(cursor):
        logger.warning("Did not find the header marker %r", HEADER_MARKER)
        raise InvalidFileType(f"header marker {HEADER_MARKER!r} not found")
    if not find_product_columns(cursor):
        logger.warning("Did not find the product columns after the header")
        raise InvalidFileType(f"columns {', '.join(COLUMNS_ORDER)} not found")

    drafts: list[tuple[str, list[Item]]] = []
    state: ParseState = NoCategoryYet()

    for row_number, row in cursor:
        classified = classify_row(row, row_number)

        if classified.kind is RowKind.TERMINATOR:
            logger.debug("Reached the total on row %d", row_number)
            break
        if classified.kind is RowKind.CATEGORY:
            drafts.append((classified.title, []))
            state = InCategory(index=len(drafts) - 1)
        elif classified.kind is RowKind.ITEM:
            if isinstance(state, InCategory):
                drafts[state.index][1].append(classified.item)
            else:
                logger.debug("Dropping item %r listed before any category", classified.item.title)

    catalog = Catalog(
        categories=tuple(Category(title=title, items=tuple(items)) for title, items in drafts)
    )
    logger.info(
        "Parsed %d categories holding %d items", len(catalog.categories), catalog.item_count
    )
    return catalog


def parse_catalog(source: SpreadsheetSource) -> Catalog:
    """Import the order form published by the farm.

    Args:
        source: Path to the xlsx file, its raw bytes, or a seekable binary
            stream.

    Returns:
        The parsed catalog.

    Raises:
        OpeningError: The payload is not an xlsx workbook.
        InvalidFileType: The workbook does not have the order form layout.
        UnexpectedCellContent: An item row has an unusable price.
    """
    workbook = open_workbook(source)
    try:
        sheet_names = workbook.sheetnames
        if ORDER_SHEET_NAME not in sheet_names or RECAP_SHEET_NAME not in sheet_names:
            logger.warning("Missing known sheets, found: %s", ", ".join(sheet_names))
            raise InvalidFileType(
                f"expected sheets {ORDER_SHEET_NAME!r} and {RECAP_SHEET_NAME!r}"
            )

        worksheet = workbook[ORDER_SHEET_NAME]
        if not isinstance(worksheet, Worksheet):
            logger.warning("Sheet %r is not a worksheet", ORDER_SHEET_NAME)
            raise InvalidFileType(f"sheet {ORDER_SHEET_NAME!r} holds no cells")

        return parse_rows(read_rows(worksheet))
    finally:
        workbook.close()
