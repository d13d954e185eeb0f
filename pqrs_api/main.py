# pqrs_api/main.py
from __future__ import annotations

from pqrs_api.bootstrap import create_app
from pqrs_api.lifecycle import register_lifecycle

app = create_app()
register_lifecycle(app)
