from __future__ import annotations

import logging
from importlib import import_module
from typing import Any

from fastapi import FastAPI, HTTPException

from mozo.registry import load_modules
from mozo.settings import configure_logging

logger = logging.getLogger(__name__)

CATEGORY_DESCRIPTIONS = {
    "Restaurant": "Bills, tips and the IVA refund when paying by card.",
}
DEFAULT_CATEGORY_DESCRIPTION = "Practical utilities for quick tasks."


def _slugify(value: str) -> str:
    return value.strip().lower().replace(" ", "-")


def build_categories() -> list[dict[str, Any]]:
    modules = [
        module for module in load_modules().values() if module.get("public", True)
    ]
    grouped: dict[str, list[dict[str, Any]]] = {}
    for module in modules:
        category = module.get("category") or "Other"
        grouped.setdefault(str(category), []).append(module)

    categories: list[dict[str, Any]] = []
    for category, items in sorted(grouped.items(), key=lambda item: item[0].lower()):
        items.sort(key=lambda item: item.get("title") or item.get("name", ""))
        categories.append(
            {
                "name": category,
                "slug": _slugify(category),
                "description": CATEGORY_DESCRIPTIONS.get(
                    category, DEFAULT_CATEGORY_DESCRIPTION
                ),
                "modules": [
                    {
                        "name": item["name"],
                        "title": item.get("title") or item["name"],
                        "description": item.get("description") or "",
                        "mount": item["mount"],
                    }
                    for item in items
                ],
            }
        )
    return categories


def import_attr(path: str) -> Any:
    if ":" not in path:
        raise ValueError(f"Invalid entrypoint '{path}'. Expected module:attr.")
    module_path, attr = path.split(":", 1)
    module = import_module(module_path)
    return getattr(module, attr)


def build_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Mozo, la cuenta!")

    @app.get("/")
    def index():
        return {"categories": build_categories()}

    @app.get("/category/{slug}")
    def category_index(slug: str):
        category = next((item for item in build_categories() if item["slug"] == slug), None)
        if not category:
            raise HTTPException(status_code=404, detail="Category not found")
        return category

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    for meta in load_modules().values():
        entrypoints = meta.get("entrypoints") or {}
        api_entry = entrypoints.get("api")
        if not api_entry:
            continue

        try:
            subapp = import_attr(api_entry)
        except (ImportError, AttributeError, ValueError):
            logger.warning("skipping module %s: cannot load %s", meta["name"], api_entry, exc_info=True)
            continue

        app.mount(meta["mount"], subapp)
        logger.info("mounted %s at %s", meta["name"], meta["mount"])

    return app
