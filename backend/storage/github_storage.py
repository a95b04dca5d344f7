# storage/github_storage.py
# ============================================================================
# NUDE STOREFRONT v1.0 — REPOSITORY FILE STORE
# ============================================================================
# Order records live as JSON files in a GitHub repository, written through
# the contents API. The blob sha returned on read is the concurrency token:
# an update carrying a stale sha is rejected upstream and surfaces here as
# StorageConflictError.
# ============================================================================

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config import RepoSettings, StoreConfig
from errors import StorageConflictError, StorageError

logger = logging.getLogger("Storefront.Storage")

GITHUB_ACCEPT = "application/vnd.github+json"


@dataclass(frozen=True)
class StoredFile:
    """Decoded file content plus the sha required to update it."""
    path: str
    content: str
    sha: str


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return default


def _is_conflict(response: httpx.Response, message: str) -> bool:
    # 409 on a stale sha; some endpoints answer 422 "sha wasn't supplied/does not match"
    if response.status_code == 409:
        return True
    return response.status_code == 422 and "sha" in message.lower()


class GitHubFileStore:
    """
    Durable JSON record storage on top of the GitHub contents API.

    Handles:
    - put: create or overwrite a file on the configured branch
    - get: read a file and its current sha
    - update: overwrite only if the supplied sha is still current

    Repository settings are resolved on every call, so missing credentials
    raise ConfigurationError before anything goes over the wire.
    """

    def __init__(self, config: StoreConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.http_timeout)
        return self._client

    async def close(self):
        """Close HTTP client."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _url(self, settings: RepoSettings, path: str) -> str:
        base = self.config.github_api_url.rstrip("/")
        return f"{base}/repos/{settings.owner}/{settings.repo}/contents/{path}"

    @staticmethod
    def _headers(settings: RepoSettings) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {settings.token}",
            "Accept": GITHUB_ACCEPT,
        }

    async def _write(
        self,
        path: str,
        content: str,
        message: str,
        sha: Optional[str],
        default_error: str,
    ) -> Dict[str, Any]:
        settings = self.config.repo_settings()
        body: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": settings.branch,
        }
        if sha is not None:
            body["sha"] = sha

        response = await self._get_client().put(
            self._url(settings, path),
            headers=self._headers(settings),
            json=body,
        )

        if not response.is_success:
            error = _error_message(response, default_error)
            if sha is not None and _is_conflict(response, error):
                logger.warning(f"Stale sha for {path}: {error}")
                raise StorageConflictError(error, status_code=response.status_code)
            logger.error(f"Write to {path} failed ({response.status_code}): {error}")
            raise StorageError(error, status_code=response.status_code)

        result = response.json()
        logger.debug(f"Wrote {path} on {settings.branch}")
        return result

    async def put(self, path: str, content: str, message: str) -> Dict[str, Any]:
        """
        Create or overwrite a file.

        Args:
            path: Path inside the repository
            content: Raw text, base64-encoded before upload
            message: Commit message

        Returns:
            Parsed API response (commit and content metadata)
        """
        return await self._write(path, content, message, None, "Failed to store order.")

    async def get(self, path: str) -> StoredFile:
        """
        Fetch a file and its sha from the configured branch.

        The caller parses the content (order files are JSON).
        """
        settings = self.config.repo_settings()
        response = await self._get_client().get(
            self._url(settings, path),
            headers=self._headers(settings),
            params={"ref": settings.branch},
        )

        if not response.is_success:
            error = _error_message(response, "Failed to fetch order.")
            logger.error(f"Read of {path} failed ({response.status_code}): {error}")
            raise StorageError(error, status_code=response.status_code)

        data = response.json()
        try:
            content = base64.b64decode(data["content"]).decode("utf-8")
            sha = data["sha"]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Unexpected contents payload for {path}: {e}")

        return StoredFile(path=path, content=content, sha=sha)

    async def update(self, path: str, content: str, message: str, sha: str) -> Dict[str, Any]:
        """
        Overwrite a file only if `sha` still names its current version.

        Raises:
            StorageConflictError: sha is stale
            StorageError: any other failure
        """
        return await self._write(path, content, message, sha, "Failed to update order.")


__all__ = ["GitHubFileStore", "StoredFile", "GITHUB_ACCEPT"]
