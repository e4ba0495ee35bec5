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
"""Known layout of the farm website and of its weekly order form."""

# Landing page announcing the current order form
LANDING_PAGE_URL = "https://www.fermedestilleuls.alsace/"

SPREADSHEET_EXTENSION = ".xlsx"

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

# Seconds; applies to the client built by TilleulsScraper when none is given
DEFAULT_TIMEOUT = 30.0

# Order form layout
ORDER_SHEET_NAME = "Commande"
RECAP_SHEET_NAME = "Recap"
HEADER_MARKER = "Bon de commande N°"
COLUMNS_ORDER = ("Produits", "Unité", "Prix vente TTC", "Quantité", "Total")
TERMINATOR_TEXT = "TOTAL"
DEFAULT_UNIT = "1"

# Rows narrower than this carry no usable product information
MIN_ROW_WIDTH = 5
