"""
Registry loader for YAML files.
"""

import copy
import yaml
from pathlib import Path
from typing import Union
import logging

from .data import default_tables, registries_from_tables
from .registry import Registries

logger = logging.getLogger(__name__)

# Sections keyed by name; an override file merges into these entry by entry
_KEYED_SECTIONS = (
    "industries",
    "platforms",
    "goals",
    "seasons",
    "devices",
    "compatibility",
    "industry_goal_adjustments",
    "creative_types",
    "competition_levels",
    "demographics",
    "locations",
    "interests",
    "behaviors",
)


class RegistryLoader:
    """Build registries from YAML so deployments and tests can inject their own tables."""

    @staticmethod
    def from_yaml(path: Union[str, Path]) -> Registries:
        """
        Load registries from a YAML file.

        The file has the same sections as the production tables. When it
        sets ``extends: default`` the sections it provides are merged over
        the production tables; otherwise it must be complete.

        Parameters
        ----------
        path : Union[str, Path]
            Path to the YAML registry file.

        Returns
        -------
        Registries
            Validated, frozen registries.

        Raises
        ------
        FileNotFoundError
            If the file doesn't exist.
        ValueError
            If the tables are invalid.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Registry file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            tables = yaml.safe_load(f) or {}

        try:
            registries = RegistryLoader.from_dict(tables)
        except Exception as e:
            raise ValueError(f"Invalid registries in {path}: {e}")

        logger.info(
            f"Loaded registries from {path}: {len(registries.industries)} industries, "
            f"{len(registries.platforms)} platforms"
        )
        return registries

    @staticmethod
    def from_dict(tables: dict) -> Registries:
        """
        Build registries from a dictionary of tables.

        Parameters
        ----------
        tables : dict
            Tables shaped like ``prepilot.registries.data.default_tables()``,
            optionally with ``extends: default``.

        Returns
        -------
        Registries
            Validated, frozen registries.
        """
        tables = dict(tables)
        base = tables.pop("extends", None)
        if base is None:
            return registries_from_tables(tables)
        if base != "default":
            raise ValueError(f"Unknown registry base '{base}' (only 'default' is supported)")

        merged = copy.deepcopy(default_tables())
        for section, value in tables.items():
            if section in _KEYED_SECTIONS:
                merged[section].update(value)
            else:
                merged[section] = value
        return registries_from_tables(merged)

    @staticmethod
    def to_yaml(tables: dict, path: Union[str, Path]) -> None:
        """Write plain registry tables to a YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(_plain(tables), f, allow_unicode=True, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved registry tables to {path}")


def _plain(value):
    """Tuples become lists so safe_dump can write them."""
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value
