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
"""Exceptions raised while retrieving and decoding the order form."""


class ScraperError(Exception):
    """Base class for every failure of the retrieval pipeline."""


class NetworkError(ScraperError):
    """The landing page or the spreadsheet could not be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class NoDataFound(ScraperError):
    """The landing page was reachable but announced no spreadsheet."""


class SpreadsheetError(ScraperError):
    """The spreadsheet does not follow the order form conventions."""


class InvalidFileType(SpreadsheetError):
    """A sheet, the header marker or the column headers are missing."""


class OpeningError(InvalidFileType):
    """The payload is not a readable xlsx workbook."""


class UnexpectedCellContent(SpreadsheetError):
    """An item row carries a price that is not a usable number."""

    def __init__(self, message: str, row_number: int | None = None) -> None:
        if row_number is not None:
            message = f"row {row_number}: {message}"
        super().__init__(message)
        self.row_number = row_number
