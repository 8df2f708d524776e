import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Keys a deployed instance cannot run without
REQUIRED_KEYS = ("DATABASE_URL", "ADMIN_KEY")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    ENV: str = "development"
    CONFIG_STRICT: bool = False

    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Shared admin key until an identity provider sits in front of the API
    ADMIN_KEY: Optional[str] = None

    # Upload gating and outcome size
    IMPORT_MAX_FILE_BYTES: int = 10 * 1024 * 1024
    IMPORT_MAX_ERRORS_REPORTED: int = 50

    # Expiry windows, in days
    EXPIRY_WARNING_DAYS: int = Field(default=30, ge=1)
    SUBSCRIPTION_WARNING_DAYS: int = Field(default=7, ge=0)

    DEFAULT_PAGE_SIZE: int = Field(default=50, ge=1)
    MAX_PAGE_SIZE: int = Field(default=500, ge=1)

    @property
    def is_production(self) -> bool:
        return self.ENV.lower() == "production"


settings = Settings()


def missing_required_keys(settings_obj=None) -> list:
    cfg = settings_obj or settings
    return [key for key in REQUIRED_KEYS if not getattr(cfg, key, None)]


def validate_config(strict: Optional[bool] = None, settings_obj=None, logger: Optional[logging.Logger] = None) -> bool:
    """Report missing required keys.

    Strict mode (argument, else CONFIG_STRICT) raises RuntimeError; otherwise
    a warning is logged. Only key names are logged, never values.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("projectintel")
    strict_mode = strict if strict is not None else bool(getattr(cfg, "CONFIG_STRICT", False))

    missing = missing_required_keys(cfg)
    if not missing:
        return True

    message = f"Missing required configuration: {', '.join(missing)}"
    if strict_mode:
        raise RuntimeError(message)
    log.warning(message, extra={"event_type": "config.missing_keys"})
    return False
