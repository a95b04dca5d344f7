# config.py
# ============================================================================
# NUDE STOREFRONT v1.0 — CONFIGURATION
# ============================================================================
# Built once at process start and handed to every component. Nothing else
# in the codebase reads the environment.
# ============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from errors import ConfigurationError


BASE_URL_ENV_VARS = ("PUBLIC_BASE_URL", "URL", "DEPLOY_PRIME_URL", "DEPLOY_URL")


@dataclass(frozen=True)
class RepoSettings:
    """Resolved coordinates of the repository that holds order files."""
    owner: str
    repo: str
    branch: str
    token: str


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for the order endpoints and their collaborators."""

    # Payment gateway
    mp_access_token: Optional[str] = None
    mp_webhook_secret: Optional[str] = None
    mp_api_url: str = "https://api.mercadopago.com"

    # Order storage
    github_token: Optional[str] = None
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None
    github_branch: str = "main"
    github_api_url: str = "https://api.github.com"
    orders_dir: str = "orders"

    # Notifications
    store_email: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: Optional[int] = None
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    smtp_from: Optional[str] = None

    # Storefront
    currency: str = "EUR"
    public_base_url: Optional[str] = None
    http_timeout: float = 10.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StoreConfig":
        env = os.environ if env is None else env

        def get(name: str) -> Optional[str]:
            value = env.get(name)
            return value or None

        smtp_port = get("EMAIL_SMTP_PORT")
        public_base_url = next(
            (env[name] for name in BASE_URL_ENV_VARS if env.get(name)), None
        )

        return cls(
            mp_access_token=get("MP_ACCESS_TOKEN"),
            mp_webhook_secret=get("MP_WEBHOOK_SECRET"),
            mp_api_url=get("MP_API_URL") or cls.mp_api_url,
            github_token=get("GITHUB_TOKEN"),
            github_owner=get("GITHUB_OWNER"),
            github_repo=get("GITHUB_REPO"),
            github_branch=get("GITHUB_BRANCH") or cls.github_branch,
            github_api_url=get("GITHUB_API_URL") or cls.github_api_url,
            orders_dir=get("ORDERS_DIR") or cls.orders_dir,
            store_email=get("STORE_EMAIL"),
            smtp_host=get("EMAIL_SMTP_HOST"),
            smtp_port=int(smtp_port) if smtp_port else None,
            smtp_user=get("EMAIL_SMTP_USER"),
            smtp_pass=get("EMAIL_SMTP_PASS"),
            smtp_from=get("EMAIL_SMTP_FROM"),
            currency=get("STORE_CURRENCY") or cls.currency,
            public_base_url=public_base_url,
            http_timeout=float(get("HTTP_TIMEOUT") or cls.http_timeout),
            host=get("HOST") or cls.host,
            port=int(get("PORT") or cls.port),
            log_level=(get("LOG_LEVEL") or cls.log_level).upper(),
        )

    def repo_settings(self) -> RepoSettings:
        """
        Resolve owner/repo/branch/token for order storage.

        GITHUB_REPO may be "owner/repo", in which case GITHUB_OWNER is
        ignored.

        Raises:
            ConfigurationError: token or owner/repo missing
        """
        if not self.github_token:
            raise ConfigurationError("Missing GITHUB_TOKEN for order storage.")

        if self.github_repo and "/" in self.github_repo:
            owner, repo = self.github_repo.split("/", 1)
            if owner and repo:
                return RepoSettings(owner, repo, self.github_branch, self.github_token)

        if not self.github_owner or not self.github_repo:
            raise ConfigurationError("Missing GITHUB_OWNER/GITHUB_REPO for order storage.")

        return RepoSettings(self.github_owner, self.github_repo, self.github_branch, self.github_token)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_port and self.smtp_user and self.smtp_pass)

    @property
    def sender_address(self) -> Optional[str]:
        return self.smtp_from or self.store_email or self.smtp_user

    def order_path(self, order_id: str) -> str:
        return f"{self.orders_dir.strip('/')}/{order_id}.json"


__all__ = ["StoreConfig", "RepoSettings", "BASE_URL_ENV_VARS"]
