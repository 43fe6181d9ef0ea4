"""
fixrepo Consolidator Configuration
Centralized configuration read from the environment and an optional .env file
"""
import os
from dotenv import load_dotenv
from pathlib import Path

from fixrepo.core.exceptions import ConfigurationError

# Load from .env file with UTF-8 encoding (Windows compatibility)
env_path = Path(__file__).parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path, encoding='utf-8')


def _env_int(key: str, default: str) -> int:
    """Read an integer setting, failing with the offending key."""
    raw = os.getenv(key, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"Setting must be an integer, got {raw!r}",
            config_key=key,
            config_file=str(env_path),
        ) from None


def _env_bool(key: str, default: str) -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# Repository Paths
# =============================================================================
FIXREPO_DIR = Path(os.getenv("FIXREPO_DIR", "repository"))
FIXREPO_RESOURCE_DIR = Path(os.getenv("FIXREPO_RESOURCE_DIR", "resources"))

# =============================================================================
# Consolidation Settings
# =============================================================================
# Enum names are expected to be unique within this many leading characters.
MAX_COMMON_PREFIX = _env_int("FIXREPO_MAX_COMMON_PREFIX", "43")

# Unresolvable glossary entries raise when strict, otherwise only warn.
GLOSSARY_STRICT = _env_bool("FIXREPO_GLOSSARY_STRICT", "true")

# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

if MAX_COMMON_PREFIX < 1:
    raise ConfigurationError(
        f"Max common prefix must be positive, got {MAX_COMMON_PREFIX}",
        config_key="FIXREPO_MAX_COMMON_PREFIX",
    )


def get_repo_dir() -> Path:
    """Get the root directory holding one sub-directory per FIX version."""
    return FIXREPO_DIR


def get_resource_path(filename: str) -> Path:
    """Get the full path of an override resource file."""
    return FIXREPO_RESOURCE_DIR / filename


# Configuration class for type safety
class Config:
    """Configuration class for type-safe access to settings."""

    # Paths
    repo_dir: Path = FIXREPO_DIR
    resource_dir: Path = FIXREPO_RESOURCE_DIR

    # Consolidation
    max_common_prefix: int = MAX_COMMON_PREFIX
    glossary_strict: bool = GLOSSARY_STRICT

    # Logging
    log_level: str = LOG_LEVEL


# Export configuration instance
config = Config()
