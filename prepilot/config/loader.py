"""
Engine configuration from YAML files and command-line overrides.

A configuration file lists only the settings it changes; it is layered over
the defaults, nested sections key by key. The same dotted keys can be set
from the command line, e.g. ``--set sanity.policy=clamp``.
"""

import yaml
from pathlib import Path
from typing import Iterable, Optional, Union
import logging

from pydantic import ValidationError

from .schema import EngineConfig

logger = logging.getLogger(__name__)

_HEADER = "# PrePilot engine configuration; settings not listed keep their defaults\n"


def merge_settings(base: dict, changes: dict, prefix: str = "") -> dict:
    """
    Return ``base`` with ``changes`` applied, recursing into nested sections.

    Raises
    ------
    ValueError
        If ``changes`` names a key ``base`` does not have, so a misspelt
        setting fails loudly instead of being ignored.
    """
    merged = dict(base)
    for key, value in changes.items():
        dotted = f"{prefix}{key}"
        if key not in base:
            raise ValueError(f"Unknown configuration key '{dotted}'")
        if isinstance(base[key], dict) and isinstance(value, dict):
            merged[key] = merge_settings(base[key], value, prefix=f"{dotted}.")
        else:
            merged[key] = value
    return merged


def parse_overrides(items: Iterable[str]) -> dict:
    """Turn ``["sanity.policy=clamp", "min_budget=2000"]`` into nested settings.

    Values are read as YAML scalars, so ``true`` and ``2000`` arrive typed.
    """
    settings: dict = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Override must look like KEY=VALUE, got '{item}'")
        *sections, leaf = key.strip().split(".")
        node = settings
        for section in sections:
            node = node.setdefault(section, {})
        node[leaf] = yaml.safe_load(raw) if raw.strip() else None
    return settings


class ConfigLoader:
    """Build, save and describe engine configurations."""

    @staticmethod
    def load(
        path: Optional[Union[str, Path]] = None,
        overrides: Iterable[str] = (),
        base: Optional[EngineConfig] = None,
    ) -> EngineConfig:
        """
        Build the configuration for a run.

        Layers, lowest first: ``base`` (the defaults when omitted), the YAML
        file at ``path``, then ``KEY=VALUE`` overrides.

        Parameters
        ----------
        path : Union[str, Path], optional
            YAML file with the settings to change.
        overrides : Iterable[str]
            Dotted ``KEY=VALUE`` settings applied last.
        base : EngineConfig, optional
            Configuration the layers start from.

        Returns
        -------
        EngineConfig
            Validated engine configuration.

        Raises
        ------
        FileNotFoundError
            If ``path`` doesn't exist.
        ValueError
            If a key is unknown or the result fails validation.
        """
        settings = (base or EngineConfig()).model_dump(mode="json")
        layers = ["defaults" if base is None else f"'{base.name}'"]

        if path is not None:
            settings = merge_settings(settings, ConfigLoader.read_yaml(path))
            layers.append(str(path))

        overrides = list(overrides)
        if overrides:
            settings = merge_settings(settings, parse_overrides(overrides))
            layers.append(f"{len(overrides)} override(s)")

        source = " + ".join(layers)
        try:
            config = EngineConfig(**settings)
        except ValidationError as e:
            raise ValueError(f"Invalid engine configuration from {source}: {e}") from e

        logger.info(f"Engine configuration '{config.name}' built from {source}")
        return config

    @staticmethod
    def from_yaml(path: Union[str, Path], base: Optional[EngineConfig] = None) -> EngineConfig:
        """Load a configuration file layered over ``base`` (or the defaults)."""
        return ConfigLoader.load(path, base=base)

    @staticmethod
    def from_dict(settings: dict, base: Optional[EngineConfig] = None) -> EngineConfig:
        """Apply a (possibly partial) settings dictionary over ``base`` or the defaults."""
        merged = merge_settings((base or EngineConfig()).model_dump(mode="json"), settings)
        return EngineConfig(**merged)

    @staticmethod
    def read_yaml(path: Union[str, Path]) -> dict:
        """Read the raw settings mapping from a YAML file; empty files give ``{}``."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            settings = yaml.safe_load(f) or {}

        if not isinstance(settings, dict):
            raise ValueError(f"Configuration in {path} must be a mapping of settings")
        return settings

    @staticmethod
    def to_yaml(config: EngineConfig, path: Union[str, Path], changes_only: bool = True) -> None:
        """
        Save a configuration to YAML.

        Parameters
        ----------
        config : EngineConfig
            Configuration to save.
        path : Union[str, Path]
            Destination; parent directories are created.
        changes_only : bool
            Write only the settings that differ from the defaults, so the
            file keeps following future default changes.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        settings = config.model_dump(mode="json", exclude_defaults=changes_only)
        with open(path, "w", encoding="utf-8") as f:
            f.write(_HEADER)
            yaml.safe_dump(settings, f, allow_unicode=True, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved {len(settings)} setting(s) of configuration '{config.name}' to {path}")

    @staticmethod
    def load_registries(path: Union[str, Path]):
        """Load registry tables from YAML (see ``RegistryLoader.from_yaml``)."""
        from ..registries.loader import RegistryLoader

        return RegistryLoader.from_yaml(path)

    @staticmethod
    def get_template() -> dict:
        """
        Every setting with its default value, as written by ``cli.py template``.

        Returns
        -------
        dict
            Template configuration with default values.
        """
        template = EngineConfig(
            name="my_forecast_config", description="PrePilot engine configuration"
        ).model_dump(mode="json")
        return template
