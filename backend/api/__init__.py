# api/__init__.py
from api.server import (
    create_app,
    resolve_base_url,
    configure_logging,
)

__all__ = [
    "create_app",
    "resolve_base_url",
    "configure_logging",
]
