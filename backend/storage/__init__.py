# storage/__init__.py
# ============================================================================
# NUDE STOREFRONT v1.0 — STORAGE MODULE
# ============================================================================
# Order records persisted as JSON files in a GitHub repository
# ============================================================================

from storage.github_storage import (
    GitHubFileStore,
    StoredFile,
)

__all__ = [
    "GitHubFileStore",
    "StoredFile",
]
