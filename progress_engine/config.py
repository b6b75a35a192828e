"""Configuration management"""
import os
from pathlib import Path
from dotenv import load_dotenv

from progress_engine.exceptions import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Catalog
# Empty path means the built-in onboarding catalog is used
ACHIEVEMENT_CATALOG_PATH: str = os.getenv("ACHIEVEMENT_CATALOG_PATH", "")
STRICT_CATALOG: bool = os.getenv("STRICT_CATALOG", "false").lower() == "true"

# Metric read by streak rules
STREAK_METRIC: str = os.getenv("STREAK_METRIC", "streak_days")

# Notifications (0 = unbounded)
NOTIFICATION_QUEUE_MAX_RAW: str = os.getenv("NOTIFICATION_QUEUE_MAX", "0")


def _parse_queue_max(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        return -1
    return value


NOTIFICATION_QUEUE_MAX: int = max(0, _parse_queue_max(NOTIFICATION_QUEUE_MAX_RAW))


# Validation
def validate_config() -> None:
    """Validate configuration"""
    if _parse_queue_max(NOTIFICATION_QUEUE_MAX_RAW) < 0:
        raise ConfigurationError(
            f"NOTIFICATION_QUEUE_MAX must be a non-negative integer, got {NOTIFICATION_QUEUE_MAX_RAW!r}",
            config_key="NOTIFICATION_QUEUE_MAX"
        )
    if ACHIEVEMENT_CATALOG_PATH and not Path(ACHIEVEMENT_CATALOG_PATH).is_file():
        raise ConfigurationError(
            f"Achievement catalog not found: {ACHIEVEMENT_CATALOG_PATH}",
            config_key="ACHIEVEMENT_CATALOG_PATH"
        )
    if not STREAK_METRIC:
        raise ConfigurationError("STREAK_METRIC cannot be empty", config_key="STREAK_METRIC")
