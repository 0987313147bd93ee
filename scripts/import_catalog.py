"""Import a WooCommerce product export into the SQLite catalog."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from salesbot.catalog.importer import transform_products  # noqa: E402
from salesbot.catalog.store import SQLiteCatalogStore  # noqa: E402
from salesbot.core.config import get_settings  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import WooCommerce products into the catalog database")
    parser.add_argument(
        "--input-file",
        type=Path,
        required=True,
        help="JSON file holding a list of WooCommerce product objects (or {'products': [...]}).",
    )
    parser.add_argument(
        "--site-id",
        required=True,
        help="Storefront identifier the products belong to.",
    )
    parser.add_argument(
        "--db-path",
        type=Path,
        default=None,
        help="Catalog database path (defaults to CATALOG_DB_PATH / settings).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and transform the input but skip writing to the database.",
    )
    return parser.parse_args()


def load_products(path: Path) -> list:
    if not path.exists():
        raise FileNotFoundError(f"Export file not found at {path}.")
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, dict):
        data = data.get("products", [])
    if not isinstance(data, list):
        raise ValueError("Export must be a list of products or an object with a 'products' list.")
    return data


def main() -> None:
    args = parse_args()
    raw_products = load_products(args.input_file)
    products, failed = transform_products(raw_products, args.site_id)

    if args.dry_run:
        print(f"Parsed {len(products)} products ({failed} failed); dry run, nothing written.")
        return

    db_path = args.db_path or get_settings().catalog_db_path
    written = SQLiteCatalogStore(db_path).upsert_products(products)
    print(f"Imported {written} products for site {args.site_id} into {db_path} ({failed} failed).")


if __name__ == "__main__":
    main()
