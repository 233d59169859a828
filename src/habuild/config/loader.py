# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/habuild/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from typing import Iterator, Optional

from pydantic import ValidationError

from .models import HaConfig
from ..sequencer.errors import ConfigError

log = logging.getLogger("habuild")

SECRETS_ENV = "HABUILD_SECRETS_FILE"


def _overlay(config: dict, secrets: dict) -> dict:
    """
    Lay *secrets* over *config* in place. Nested mappings merge key by key;
    empty secret values never blank out a configured one.
    """
    for key, value in secrets.items():
        current = config.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _overlay(current, value)
        elif value not in (None, ""):
            config[key] = value
    return config


def _secrets_candidates(config_path: Path) -> Iterator[Path]:
    workspace = os.environ.get("WORKSPACE_ROOT")
    if workspace:
        yield Path(workspace) / "cluster-config" / "secrets.yaml"
    yield config_path.parent / "secrets.yaml"


def _find_secrets_file(config_path: Path) -> Optional[Path]:
    """
    $HABUILD_SECRETS_FILE wins outright (a missing file is only warned
    about). Otherwise the first secrets.yaml found under
    $WORKSPACE_ROOT/cluster-config or next to the cluster config.
    """
    explicit = os.environ.get(SECRETS_ENV)
    if explicit:
        if Path(explicit).is_file():
            return Path(explicit)
        log.warning("%s=%s does not exist, skipping", SECRETS_ENV, explicit)
        return None
    return next((p for p in _secrets_candidates(config_path) if p.is_file()), None)


def _load_yaml(path: Path) -> dict:
    """Read *path*, expand ${ENV_VAR} references and parse it as a mapping."""
    try:
        data = yaml.safe_load(os.path.expandvars(path.read_text()))
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: invalid YAML: {e}") from e
    except OSError as e:
        raise ConfigError(f"{path}: cannot read: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return data


def load_config(path: str | Path) -> HaConfig:
    """
    Load and validate an HA cluster YAML config.

    SSH passwords and similar values can live in a separate secrets.yaml
    that mirrors the config structure; it is overlaid before validation.
    Every failure surfaces as ConfigError.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _overlay(data, _load_yaml(secrets_path))

    try:
        return HaConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e
