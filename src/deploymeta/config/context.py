"""Connection context handed to remote adapters at construction."""

from __future__ import annotations

from dataclasses import dataclass

from deploymeta.config.settings import DEFAULT_BASE_URL, Settings, get_settings
from deploymeta.core.errors import ConfigurationError


@dataclass(frozen=True)
class FactoryContext:
    """Process-wide connection details for the Factory API. Never mutated."""

    licence_key: str
    deployment_name: str
    base_url: str = DEFAULT_BASE_URL
    oidc_issuer: str = DEFAULT_BASE_URL
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> FactoryContext:
        settings = settings or get_settings()
        missing = [
            name
            for name, value in (
                ("licence_key", settings.licence_key),
                ("deployment_name", settings.deployment_name),
            )
            if not value
        ]
        if missing:
            env_vars = ", ".join(f"DEPLOYMETA_{name.upper()}" for name in missing)
            raise ConfigurationError(
                f"Missing Factory credentials; set {env_vars}",
                details={"missing": missing},
            )
        return cls(
            licence_key=settings.licence_key or "",
            deployment_name=settings.deployment_name or "",
            base_url=(settings.base_url or DEFAULT_BASE_URL).rstrip("/"),
            oidc_issuer=settings.oidc_issuer or DEFAULT_BASE_URL,
            timeout=settings.http_timeout,
        )
