"""Settings loading and validation for the YAML settings files."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from plottybot.core.errors import SettingsLoadError, SettingsValidationError

SETTINGS_FILENAME = "settings.yaml"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise SettingsValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class Settings:
    discovery_origin: str = "http://192.168.178.192:3000"
    discovery_timeout_s: float = 5.0
    device_port: int = 8766
    retry_delay_s: float = 5.0
    open_timeout_s: float = 10.0

    @property
    def discovery_url(self) -> str:
        return f"{self.discovery_origin.rstrip('/')}/api/devices"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources: tuple[str, ...]
    warnings: tuple[str, ...]


def load_schema_validator(name: str) -> Any:
    schema_text = resources.files("plottybot.schemas").joinpath(name).read_text(encoding="utf-8")
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _user_settings_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "plottybot" / SETTINGS_FILENAME


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SettingsLoadError(f"Could not read settings file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise SettingsValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise SettingsValidationError(f"Settings file {path} must contain a mapping at root")
    return loaded


def _build_settings(doc: dict[str, Any], sources: tuple[str, ...]) -> Settings:
    validator = load_schema_validator("settings.schema.json")
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        joined = ", ".join(sources)
        raise SettingsValidationError(f"Schema validation failed for {joined}{where}: {exc.message}") from exc

    return Settings(
        discovery_origin=doc["discovery_origin"],
        discovery_timeout_s=float(doc["discovery_timeout_s"]),
        device_port=int(doc["device_port"]),
        retry_delay_s=float(doc["retry_delay_s"]),
        open_timeout_s=float(doc["open_timeout_s"]),
    )


def load_settings(path: Path | None = None) -> LoadedSettings:
    """Merge packaged defaults with the user file (or ``path``) and validate.

    Unknown keys and out-of-range values raise ``SettingsValidationError``.
    A missing user file is not an error; a missing explicit ``path`` is.
    """
    packaged = resources.files("plottybot.defaults").joinpath(SETTINGS_FILENAME)
    doc = _read_yaml(packaged)
    sources = [str(packaged)]
    warnings: list[str] = []

    override = path if path is not None else _user_settings_path()
    if path is not None or override.is_file():
        user_doc = _read_yaml(override)
        if not user_doc:
            warning = f"Settings file {override} is empty; using packaged defaults"
            LOGGER.warning(warning)
            warnings.append(warning)
        for key in sorted(user_doc):
            if key in doc and doc[key] != user_doc[key]:
                LOGGER.debug("Setting '%s' overridden by %s", key, override)
        doc.update(user_doc)
        sources.append(str(override))

    return LoadedSettings(
        settings=_build_settings(doc, tuple(sources)),
        sources=tuple(sources),
        warnings=tuple(warnings),
    )
