from __future__ import annotations

from mozo.engine import build_app

app = build_app()
