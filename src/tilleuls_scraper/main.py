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
"""CLI entry point for the order form scraper."""

import argparse
import logging
import sys

import yaml
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from tilleuls_scraper import __version__
from tilleuls_scraper.config import LANDING_PAGE_URL
from tilleuls_scraper.errors import ScraperError
from tilleuls_scraper.models import Catalog, FetchResult
from tilleuls_scraper.order_form import parse_catalog
from tilleuls_scraper.scraper import TilleulsScraper

logger = logging.getLogger(__name__)


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        prog="tilleuls-scraper",
        description="Retrieve the weekly order form of the farm and list its products.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-u",
        "--url",
        default=LANDING_PAGE_URL,
        help="Landing page announcing the order form (default: %(default)s).",
    )
    parser.add_argument(
        "-f",
        "--file",
        metavar="PATH",
        help="Parse a local order form instead of retrieving it.",
    )
    parser.add_argument(
        "--etag",
        metavar="TOKEN",
        help="ETag of the last retrieval; nothing is downloaded if it is still current.",
    )
    parser.add_argument(
        "-p",
        "--print",
        action="store_true",
        dest="print_table",
        help="Print a table of the catalog to stdout.",
    )
    parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output YAML file path. Use '-' for stdout.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity. Use -vv for debug output.",
    )

    return parser.parse_args(args)


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: Verbosity level (0=warning, 1=info, 2+=debug).
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def print_catalog_table(catalog: Catalog, console: Console) -> None:
    """Print a Rich table of the catalog, one row per item.

    Args:
        catalog: The parsed catalog.
        console: Rich console for output.
    """
    table = Table(title="Order form")
    table.add_column("Category", style="cyan")
    table.add_column("Product", style="green")
    table.add_column("Unit")
    table.add_column("Price", style="yellow", justify="right")

    for category in catalog.categories:
        if not category.items:
            table.add_row(category.title, "-", "-", "-")
        for index, item in enumerate(category.items):
            table.add_row(
                category.title if index == 0 else "",
                item.title,
                item.unit,
                f"{item.amount:.2f} €",
            )

    console.print(table)


def output_yaml(result: FetchResult, output_path: str) -> None:
    """Output the retrieval result as YAML.

    Args:
        result: The retrieval outcome, including its catalog.
        output_path: File path or '-' for stdout.
    """
    data = {
        "etag": result.etag,
        "link": result.link,
        "categories": [
            {
                "title": category.title,
                "items": [item.model_dump() for item in category.items],
            }
            for category in result.catalog.categories
        ],
    }

    if output_path == "-":
        yaml.dump(data, sys.stdout, default_flow_style=False, sort_keys=False, allow_unicode=True)
    else:
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        logger.info("Output written to: %s", output_path)


def retrieve(url: str, etag: str | None, console: Console) -> FetchResult:
    """Run the conditional retrieval with a progress spinner."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
    )

    with progress, TilleulsScraper(landing_url=url) as scraper:
        task = progress.add_task(f"Retrieving order form from {url}...", total=1)
        result = scraper.retrieve_catalog(etag)
        progress.update(task, completed=1)

    return result


def main(args: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parsed_args = parse_args(args)
    setup_logging(parsed_args.verbose)

    console = Console()

    try:
        if parsed_args.file:
            logger.info("Parsing local order form: %s", parsed_args.file)
            result = FetchResult(changed=True, catalog=parse_catalog(parsed_args.file))
        else:
            result = retrieve(parsed_args.url, parsed_args.etag, console)
    except ScraperError as e:
        logger.error("Could not retrieve the order form: %s", e)
        return 1
    except OSError as e:
        logger.error("Cannot read %s: %s", e.filename, e.strerror)
        return 1

    if not result.changed:
        console.print(f"Order form unchanged (ETag {result.etag}).")
        return 0

    catalog = result.catalog
    logger.info("Found %d categories, %d items", len(catalog.categories), catalog.item_count)
    if not catalog.categories:
        logger.warning("The order form lists no category")

    if parsed_args.print_table:
        print_catalog_table(catalog, console)

    if parsed_args.output:
        output_yaml(result, parsed_args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
