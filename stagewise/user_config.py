"""Repository configuration for stagewise.

Handles reading and writing the .stagewise/config.yaml file in each repository:
- ignore: file patterns left out of boundary analysis
- boundaries: BoundaryConfig options (sizes, thresholds, classifier weights)
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from stagewise.boundary.config import BoundaryConfig
from stagewise.boundary.exceptions import ValidationError

logger = logging.getLogger(__name__)


# Default configuration values
DEFAULT_CONFIG = {
    "ignore": [
        # Lock files (auto-generated dependency files)
        "poetry.lock",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "Cargo.lock",
        "Gemfile.lock",
        "composer.lock",
        "go.sum",
        # Build artifacts
        "*.min.js",
        "*.min.css",
        "*.map",
        # Binary and generated files
        "*.pyc",
        "*.pyo",
        "*.so",
        # IDE and editor files
        ".idea/*",
        ".vscode/*",
        "*.swp",
    ],
    "boundaries": {
        "min_boundary_size": 1,
        "max_boundary_size": 8,
    },
}


def get_config_dir(repo_root: Path) -> Path:
    """Get the repository config directory.

    Args:
        repo_root: The root directory of the git repository.

    Returns:
        Path to .stagewise/
    """
    return repo_root / ".stagewise"


def get_config_file(repo_root: Path) -> Path:
    """Return path to the config.yaml file."""
    return get_config_dir(repo_root) / "config.yaml"


def _default_config() -> dict:
    return {
        "ignore": list(DEFAULT_CONFIG["ignore"]),
        "boundaries": dict(DEFAULT_CONFIG["boundaries"]),
    }


def load_config(repo_root: Path) -> dict:
    """Load the stagewise configuration from config.yaml.

    Missing keys are filled from the defaults. A missing or corrupted file
    yields the defaults.

    Args:
        repo_root: The root directory of the git repository.

    Returns:
        Configuration dictionary.
    """
    config_file = get_config_file(repo_root)
    if not config_file.exists():
        return _default_config()

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise ValueError("top-level value is not a mapping")
    except (yaml.YAMLError, OSError, ValueError) as e:
        logger.warning("Ignoring unreadable %s: %s", config_file, e)
        return _default_config()

    # Merge with defaults for any missing keys
    for key, value in _default_config().items():
        if key not in config or config[key] is None:
            config[key] = value
    return config


def save_config(repo_root: Path, config: dict) -> None:
    """Save the configuration to config.yaml.

    Args:
        repo_root: The root directory of the git repository.
        config: Configuration dictionary to save.
    """
    config_file = get_config_file(repo_root)
    config_file.parent.mkdir(exist_ok=True)

    with open(config_file, "w") as f:
        yaml.dump(
            config,
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


def get_ignore_patterns(repo_root: Path) -> list[str]:
    """Get the list of ignore patterns from config."""
    config = load_config(repo_root)
    return list(config.get("ignore") or [])


def add_ignore_pattern(repo_root: Path, pattern: str) -> bool:
    """Add a pattern to the ignore list.

    Returns:
        True if the pattern was added, False if it was already present.
    """
    config = load_config(repo_root)
    patterns = config.setdefault("ignore", [])
    if pattern in patterns:
        return False
    patterns.append(pattern)
    save_config(repo_root, config)
    return True


def remove_ignore_pattern(repo_root: Path, pattern: str) -> bool:
    """Remove a pattern from the ignore list.

    Returns:
        True if pattern was found and removed, False otherwise.
    """
    config = load_config(repo_root)
    if pattern in (config.get("ignore") or []):
        config["ignore"].remove(pattern)
        save_config(repo_root, config)
        return True
    return False


def load_boundary_config(repo_root: Path, **overrides: Any) -> BoundaryConfig:
    """Build the BoundaryConfig for a repository.

    Values from the "boundaries" section are applied first, then the
    repository ignore list, then any non-None overrides (CLI flags).

    Raises:
        ValidationError: If the resulting configuration is invalid.
    """
    config = load_config(repo_root)
    section = config.get("boundaries") or {}
    if not isinstance(section, dict):
        raise ValidationError("The 'boundaries' section of .stagewise/config.yaml must be a mapping")

    boundary_config = BoundaryConfig.from_mapping(section)
    boundary_config = boundary_config.with_overrides(
        ignore_patterns=tuple(config.get("ignore") or ()) + tuple(boundary_config.ignore_patterns),
    )
    return boundary_config.with_overrides(**overrides).validate()
