"""
Configuration management for workspace-functions.

Settings come from environment variables, optionally overlaid with OAuth
credentials from GCP Secret Manager (USE_SECRET_MANAGER=true).

Missing required values are fatal in production. In development and test
the loader substitutes placeholders and logs a warning so the dev harness
can start without real credentials.
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any

from workspace_functions.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEVELOPMENT = "development"
PRODUCTION = "production"
TEST = "test"

DEFAULT_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

# Env var name -> Secret Manager secret name
SECRET_NAMES = {
    "OAUTH2_CLIENT_ID": "GOOGLE-OAUTH-CLIENT-ID",
    "OAUTH2_CLIENT_SECRET": "GOOGLE-OAUTH-CLIENT-SECRET",
    "OAUTH2_REFRESH_TOKEN": "GOOGLE-OAUTH-REFRESH-TOKEN",
}

# Settings field -> env var name, for values required in production
REQUIRED_SETTINGS = {
    "project_id": "GOOGLE_CLOUD_PROJECT_ID",
    "oauth_client_id": "OAUTH2_CLIENT_ID",
    "oauth_client_secret": "OAUTH2_CLIENT_SECRET",
    "oauth_refresh_token": "OAUTH2_REFRESH_TOKEN",
}

_DEV_PLACEHOLDERS = {
    "project_id": "local-dev-project",
    "oauth_client_id": "dev-client-id",
    "oauth_client_secret": "dev-client-secret",
    "oauth_refresh_token": "dev-refresh-token",
}


@dataclass(frozen=True)
class Settings:
    """Process-wide settings.

    Attributes:
        environment: development, production or test
        project_id: GCP project hosting the functions and secrets
        oauth_client_id: Google OAuth client ID
        oauth_client_secret: Google OAuth client secret
        oauth_refresh_token: Long-lived refresh token for the Workspace account
        oauth_redirect_uri: Redirect URI used by the consent flow
        port: Port for the local dev server
        log_level: Root log level
        functions_package: Package scanned for handler modules
        resources_config_path: Path to the named resources JSON file
        backup_source_folder: Default Drive folder for backup-drive-files
        cleanup_folder_id: Default Drive folder for clean-old-files
    """

    environment: str = DEVELOPMENT
    project_id: str = ""
    oauth_client_id: str = ""
    oauth_client_secret: str = ""
    oauth_refresh_token: str = ""
    oauth_redirect_uri: str = DEFAULT_REDIRECT_URI
    port: int = 8080
    log_level: str = "INFO"
    functions_package: str = "workspace_functions.functions"
    resources_config_path: str = "config/resources.json"
    backup_source_folder: str = ""
    cleanup_folder_id: str = ""

    @property
    def is_local(self) -> bool:
        return self.environment == DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            environment=os.getenv("ENVIRONMENT", DEVELOPMENT).lower(),
            project_id=os.getenv("GOOGLE_CLOUD_PROJECT_ID", ""),
            oauth_client_id=os.getenv("OAUTH2_CLIENT_ID", ""),
            oauth_client_secret=os.getenv("OAUTH2_CLIENT_SECRET", ""),
            oauth_refresh_token=os.getenv("OAUTH2_REFRESH_TOKEN", ""),
            oauth_redirect_uri=os.getenv("OAUTH2_REDIRECT_URI", DEFAULT_REDIRECT_URI),
            port=int(os.getenv("PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            functions_package=os.getenv(
                "FUNCTIONS_PACKAGE", "workspace_functions.functions"
            ),
            resources_config_path=os.getenv(
                "RESOURCES_CONFIG_PATH", "config/resources.json"
            ),
            backup_source_folder=os.getenv("BACKUP_SOURCE_FOLDER", ""),
            cleanup_folder_id=os.getenv("CLEANUP_FOLDER_ID", ""),
        )

    @classmethod
    def from_gcp_secrets(cls) -> "Settings":
        """
        Load settings from the environment, filling OAuth credentials from
        GCP Secret Manager.

        Secrets that cannot be read keep their environment value.
        """
        settings = cls.from_env()
        if not settings.project_id:
            logger.warning("GOOGLE_CLOUD_PROJECT_ID not set, skipping Secret Manager")
            return settings

        try:
            from google.cloud import secretmanager

            client = secretmanager.SecretManagerServiceClient()
        except Exception as e:
            logger.warning(
                f"GCP Secret Manager unavailable: {type(e).__name__}. "
                "Falling back to environment variables."
            )
            return settings

        def get_secret(name: str) -> str:
            try:
                secret_path = f"projects/{settings.project_id}/secrets/{name}/versions/latest"
                response = client.access_secret_version(request={"name": secret_path})
                return response.payload.data.decode("UTF-8")
            except Exception as e:
                logger.warning(f"Could not read secret {name}: {type(e).__name__}")
                return ""

        overrides = {
            "oauth_client_id": get_secret(SECRET_NAMES["OAUTH2_CLIENT_ID"]),
            "oauth_client_secret": get_secret(SECRET_NAMES["OAUTH2_CLIENT_SECRET"]),
            "oauth_refresh_token": get_secret(SECRET_NAMES["OAUTH2_REFRESH_TOKEN"]),
        }
        return replace(settings, **{k: v for k, v in overrides.items() if v})

    def missing(self) -> list[str]:
        """Env var names of required settings that are empty."""
        return [env for attr, env in REQUIRED_SETTINGS.items() if not getattr(self, attr)]

    def validate(self) -> "Settings":
        """
        Check required settings.

        Returns:
            These settings, or a copy with placeholders for missing values
            outside production

        Raises:
            ConfigurationError: If values are missing in production
        """
        missing = self.missing()
        if not missing:
            return self

        if self.is_production:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )

        logger.warning(
            f"Missing environment variables ({', '.join(missing)}); "
            f"using {self.environment} defaults"
        )
        defaults = {
            attr: placeholder
            for attr, placeholder in _DEV_PLACEHOLDERS.items()
            if not getattr(self, attr)
        }
        return replace(self, **defaults)

    def to_dict(self) -> dict[str, Any]:
        """Settings without secret values."""
        secret_fields = {"oauth_client_secret", "oauth_refresh_token"}
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in secret_fields:
                result[f"has_{f.name}"] = bool(value)
            else:
                result[f.name] = value
        return result


_settings: Settings | None = None


def load_settings() -> Settings:
    """
    Load and validate settings from the configured source.

    Raises:
        ConfigurationError: If required values are missing in production
    """
    use_secret_manager = os.getenv("USE_SECRET_MANAGER", "false").lower() == "true"
    settings = Settings.from_gcp_secrets() if use_secret_manager else Settings.from_env()
    return settings.validate()


def get_settings() -> Settings:
    """Return the cached settings, loading them on first use."""
    global _settings

    if _settings is None:
        _settings = load_settings()
    return _settings


def clear_settings() -> None:
    """Clear cached settings (for testing)."""
    global _settings
    _settings = None
