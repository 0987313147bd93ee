"""Launch script that seeds the catalog before starting Uvicorn."""

from __future__ import annotations

import importlib
import logging
import os

import uvicorn

logger = logging.getLogger("salesbot.launcher")


def main() -> None:
    # Seed before the app import so the catalog store opens the seeded file.
    try:
        from salesbot.init_data import seed_on_startup  # noqa: WPS433 (import position)

        seed_on_startup()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Data seeding step skipped: %s", exc)

    app_module = importlib.import_module("salesbot.main")
    app = app_module.app  # type: ignore[attr-defined]

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
