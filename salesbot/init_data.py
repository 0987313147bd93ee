"""One-time catalog seeding.

If the configured catalog database is missing, copy a bundled ``catalog.db``
from the seed directory, or import a WooCommerce JSON export
(``catalog.json`` holding ``{"site_id": ..., "products": [...]}``) into it.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from salesbot.catalog.importer import transform_products
from salesbot.catalog.store import SQLiteCatalogStore
from salesbot.core.config import Settings, get_settings

logger = logging.getLogger("salesbot.init")


def _copy_if_missing(src: Path, dst: Path) -> bool:
    try:
        if dst.exists() or not src.exists():
            return False
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)
        logger.info("Seeded %s -> %s", src, dst)
        return True
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to seed %s to %s: %s", src, dst, exc)
        return False


def import_export_file(path: Path, db_path: Path) -> int:
    """Import a WooCommerce JSON export into the catalog; return rows written."""

    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)

    site_id = str(data.get("site_id") or "").strip()
    if not site_id:
        raise ValueError(f"{path} does not declare a site_id")

    products, failed = transform_products(data.get("products") or [], site_id)
    written = SQLiteCatalogStore(db_path).upsert_products(products)
    logger.info("Imported %d products for %s from %s (%d failed)", written, site_id, path, failed)
    return written


def seed_on_startup(settings: Settings | None = None) -> None:
    """Populate the catalog database from the seed directory if it is missing."""

    settings = settings or get_settings()
    seed_dir = Path(settings.seed_dir)
    if not seed_dir.exists():
        logger.debug("No seed directory present; skipping data seeding")
        return

    db_path = Path(settings.catalog_db_path)
    if db_path.exists():
        return
    if _copy_if_missing(seed_dir / "catalog.db", db_path):
        return

    export_path = seed_dir / "catalog.json"
    if export_path.exists():
        try:
            import_export_file(export_path, db_path)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to import %s: %s", export_path, exc)
