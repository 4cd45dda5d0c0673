"""
Configuration for vcfremap

Settings come from a YAML file merged over built-in defaults; command-line
flags override both.

Example (config.example.yaml):
    logging:
      level: INFO
    modified_sequence:
      contig_suffix: "_mod"
      rename: null
      jobs: 4
      assume_sorted: true
    transcripts:
      bed: /path/to/genes.bed
      fasta: /path/to/transcripts.fa
      require_ref_within_exon: false

Usage:
    from vcfremap.config import load_config, get_nested
    config = load_config("config.yaml")
    jobs = get_nested(config, "modified_sequence.jobs")
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
    },
    "modified_sequence": {
        "contig_suffix": "",
        "rename": None,
        "jobs": 1,
        "assume_sorted": True,
    },
    "transcripts": {
        "bed": None,
        "fasta": None,
        "require_ref_within_exon": False,
    },
}

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge override into a copy of base.

    Examples:
        >>> merge_config({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}})
        {'a': {'b': 1, 'c': 3}}
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file over the defaults.

    Args:
        config_path: Path to YAML configuration file; None gives the defaults

    Returns:
        Dictionary containing configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        ValueError: If the file's top level is not a mapping
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f)

    if config is None:
        return copy.deepcopy(DEFAULT_CONFIG)
    if not isinstance(config, dict):
        raise ValueError(f"Configuration must be a mapping: {config_path}")

    return merge_config(DEFAULT_CONFIG, config)


def get_nested(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Get a nested value from config using dot notation.

    Args:
        config: Configuration dictionary
        key_path: Dot-separated path (e.g., "modified_sequence.jobs")
        default: Default value if key not found

    Returns:
        Value at the specified path, or default if not found

    Examples:
        >>> config = {"transcripts": {"bed": "genes.bed"}}
        >>> get_nested(config, "transcripts.bed")
        'genes.bed'
        >>> get_nested(config, "transcripts.missing", "default")
        'default'
    """
    keys = key_path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def validate_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate configuration values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, list of error messages)
    """
    errors = []

    level = get_nested(config, "logging.level", "INFO")
    if str(level).upper() not in LOG_LEVELS:
        errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {level}")

    jobs = get_nested(config, "modified_sequence.jobs", 1)
    try:
        if isinstance(jobs, bool) or int(jobs) < 1:
            errors.append(f"modified_sequence.jobs must be >= 1, got {jobs}")
    except (ValueError, TypeError):
        errors.append(f"modified_sequence.jobs must be an integer, got {jobs}")

    suffix = get_nested(config, "modified_sequence.contig_suffix", "")
    if suffix is not None and not isinstance(suffix, str):
        errors.append(f"modified_sequence.contig_suffix must be a string, got {suffix!r}")

    for key_path in ("modified_sequence.assume_sorted", "transcripts.require_ref_within_exon"):
        value = get_nested(config, key_path)
        if value is not None and not isinstance(value, bool):
            errors.append(f"{key_path} must be true or false, got {value!r}")

    # Referenced files must exist
    for key_path in ("transcripts.bed", "transcripts.fasta"):
        path = get_nested(config, key_path)
        if path and not Path(path).exists():
            errors.append(f"File not found: {path} ({key_path})")

    return len(errors) == 0, errors


def log_level(config: Dict[str, Any]) -> int:
    """Logging level constant for the configured level name."""
    return getattr(logging, str(get_nested(config, "logging.level", "INFO")).upper())
