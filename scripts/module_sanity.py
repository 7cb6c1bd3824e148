#!/usr/bin/env python3
"""Check module manifests. Run from the repo root: python -m scripts.module_sanity"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

from mozo.engine import import_attr
from mozo.registry import MODULES_PATH, load_modules

REQUIRED_FIELDS = ("title", "version", "description", "category")


def check_module(meta: Dict[str, Any]) -> List[str]:
    name = meta["name"]
    issues: List[str] = []

    for key in REQUIRED_FIELDS:
        if not str(meta.get(key) or "").strip():
            issues.append(f"{name}: missing {key}")

    if str(meta.get("standard_version") or "").strip() != "1.0":
        issues.append(f"{name}: standard_version must be '1.0'")

    mount = meta["mount"]
    if mount == "/":
        issues.append(f"{name}: mount '/' is reserved")
    if " " in mount:
        issues.append(f"{name}: mount contains spaces")

    entrypoints = meta.get("entrypoints") or {}
    api = entrypoints.get("api") if isinstance(entrypoints, dict) else None
    if meta.get("public", True):
        if not api:
            issues.append(f"{name}: missing entrypoints.api")
        else:
            try:
                import_attr(str(api))
            except (ImportError, AttributeError, ValueError) as exc:
                issues.append(f"{name}: entrypoint {api} does not load ({exc})")
    return issues


def run(modules_path: Path = MODULES_PATH) -> List[str]:
    issues: List[str] = []
    mounts: Dict[str, str] = {}
    for name, meta in load_modules(modules_path).items():
        issues.extend(check_module(meta))
        mount = meta["mount"]
        if mount in mounts:
            issues.append(f"{name}: mount '{mount}' duplicates {mounts[mount]}")
        else:
            mounts[mount] = name
    return issues


def main() -> int:
    issues = run()
    if issues:
        print("Module sanity check failed:\n")
        for issue in issues:
            print(f"- {issue}")
        return 1

    print("Module sanity check passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
