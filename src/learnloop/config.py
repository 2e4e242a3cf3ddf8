"""learnloop Configuration

Configuration loading with environment variable support and sensible defaults.

Environment Variables:
    LEARNLOOP_CONFIG_PATH: Path to config file (default: learnloop.yaml in the memory root)
    LEARNLOOP_HOME: Override the memory root directory

Configuration Schema:
    paths:
        root: str - Memory root (default: ~/.learnloop)
        learnings: str - Learning records directory
        patterns: str - Pattern index directory (holds index.json)
        pending: str - Proposals awaiting review
        approved: str - Auto-applied pattern notes
        changelog: str - Audit changelog markdown file
        destinations_root: str - Base directory for routed rule files
    detection:
        threshold: int - Records needed to form a pattern (default: 3)
        tag_overlap_required: int - Shared tags needed per record (default: 2)
    classification:
        drop_low_relevance_learnings: bool - Apply the low-relevance cut to
            learning-derived patterns as well (default: False). Investigation
            patterns are always cut; learning patterns are kept by default
            because their short tag lists rarely contain a relevance keyword.
    logging:
        level: str - Logging level (default: "INFO")
"""

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ROOT = Path.home() / ".learnloop"
CONFIG_FILENAME = "learnloop.yaml"

# Default configuration values
DEFAULT_CONFIG: Dict[str, Any] = {
    "paths": {
        "root": None,  # DEFAULT_ROOT unless LEARNLOOP_HOME is set
        "learnings": "learning",
        "patterns": "patterns",
        "pending": "patterns/pending",
        "approved": "patterns/approved",
        "changelog": "CHANGELOG.md",
        "destinations_root": None,  # Same as root
    },
    "detection": {
        "threshold": 3,
        "tag_overlap_required": 2,
    },
    "classification": {
        "drop_low_relevance_learnings": False,
    },
    "logging": {
        "level": "INFO",
    },
}


@dataclass(frozen=True)
class LearnloopPaths:
    """Resolved filesystem locations used by a mining pass."""

    root: Path
    learnings: Path
    patterns: Path
    pending: Path
    approved: Path
    changelog: Path
    destinations_root: Path

    @property
    def index_file(self) -> Path:
        return self.patterns / "index.json"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge override dict into base dict.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (user config)

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _resolve_path(path: Optional[str], base_dir: Path) -> Optional[Path]:
    """
    Resolve a path, making relative paths absolute from base_dir.

    Args:
        path: Path string (absolute or relative) or None
        base_dir: Base directory for relative path resolution

    Returns:
        Resolved absolute Path or None if path was None
    """
    if path is None:
        return None

    path_obj = Path(path).expanduser()
    if path_obj.is_absolute():
        return path_obj
    return (base_dir / path_obj).resolve()


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise yaml.YAMLError(f"top-level value must be a mapping, got {type(data).__name__}")
    return data


def get_root(config_root: Optional[str] = None) -> Path:
    """Memory root: LEARNLOOP_HOME, then the configured root, then ~/.learnloop."""
    env_root = os.environ.get("LEARNLOOP_HOME")
    if env_root:
        return Path(env_root).expanduser()
    if config_root:
        return Path(config_root).expanduser()
    return DEFAULT_ROOT


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file with environment variable overrides.

    Configuration Loading Order (later overrides earlier):
    1. Default values (DEFAULT_CONFIG)
    2. Config file (from LEARNLOOP_CONFIG_PATH or config_path parameter)
    3. Environment variable overrides (LEARNLOOP_HOME)

    Args:
        config_path: Explicit config file path (overrides LEARNLOOP_CONFIG_PATH)

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigurationError: If an explicit config file exists but is invalid YAML
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    file_path = config_path or os.environ.get("LEARNLOOP_CONFIG_PATH")

    if file_path:
        resolved_path = Path(file_path).expanduser()
        if resolved_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(resolved_path))
                logger.info(f"Loaded configuration from: {resolved_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in config file: {e}")
            except OSError as e:
                raise ConfigurationError(f"Cannot read config file: {e}")
        else:
            logger.warning(f"Config file not found (using defaults): {file_path}")
    else:
        default_config_path = get_root() / CONFIG_FILENAME
        if default_config_path.exists():
            try:
                config = _deep_merge(config, _read_yaml(default_config_path))
                logger.info(f"Loaded configuration from: {default_config_path}")
            except yaml.YAMLError as e:
                logger.warning(f"Invalid YAML in default config (ignoring): {e}")
            except OSError as e:
                logger.warning(f"Cannot read default config (ignoring): {e}")
        else:
            logger.debug("No config file found, using defaults")

    root = get_root(config["paths"].get("root"))
    config["paths"]["root"] = str(root)
    if os.environ.get("LEARNLOOP_HOME"):
        logger.info(f"Memory root override from env: {root}")

    return config


def get_paths(config: Dict[str, Any]) -> LearnloopPaths:
    """
    Resolve every configured location against the memory root.

    Args:
        config: Configuration dictionary from load_config()

    Returns:
        LearnloopPaths with absolute paths
    """
    paths = config.get("paths", {})
    root = get_root(paths.get("root"))
    defaults = DEFAULT_CONFIG["paths"]

    def resolve(key: str) -> Path:
        return _resolve_path(paths.get(key) or defaults[key], root)

    destinations_root = _resolve_path(paths.get("destinations_root"), root) or root

    return LearnloopPaths(
        root=root,
        learnings=resolve("learnings"),
        patterns=resolve("patterns"),
        pending=resolve("pending"),
        approved=resolve("approved"),
        changelog=resolve("changelog"),
        destinations_root=destinations_root,
    )


def get_detection_config(config: Dict[str, Any]) -> Dict[str, int]:
    """Extract detection thresholds with defaults filled in."""
    detection = config.get("detection", {})
    defaults = DEFAULT_CONFIG["detection"]
    return {
        "threshold": int(detection.get("threshold", defaults["threshold"])),
        "tag_overlap_required": int(
            detection.get("tag_overlap_required", defaults["tag_overlap_required"])
        ),
    }
