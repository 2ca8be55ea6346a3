import json
import os
from dataclasses import dataclass, field, fields, replace as dc_replace
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .logger import get_logger

logger = get_logger(__name__)

TOOL_NAME = "tmxrw"
TOOL_VERSION = "1.2.0"

DEFAULT_XML_VERSION = "1.0"
DEFAULT_TMX_VERSION = "1.4"
DEFAULT_ENCODING = "UTF-8"

DEFAULT_HEADER: Mapping[str, str] = MappingProxyType({
    "adminlang": "en",
    "creationtool": TOOL_NAME,
    "creationtoolversion": TOOL_VERSION,
    "datatype": "xml",
    "o-tmf": "XLIFF",
    "segtype": "block",
})


def _freeze(mapping: Optional[Mapping[str, Any]]) -> Mapping[str, str]:
    return MappingProxyType({str(k): str(v) for k, v in (mapping or {}).items()})


@dataclass(frozen=True)
class TmxConfig:
    """
    Immutable settings for reading and writing a TMX document.

    `header` holds the attributes written on the <header> element, in order.
    Passing `header=` directly replaces the default header as a whole; use
    `with_header` to merge overrides over the defaults.
    Instances are never mutated; use `with_header` / `replace` to derive new ones.
    """
    header: Mapping[str, str] = field(default_factory=lambda: DEFAULT_HEADER)
    xml_version: str = DEFAULT_XML_VERSION
    tmx_version: str = DEFAULT_TMX_VERSION
    encoding: str = DEFAULT_ENCODING
    backup: bool = True
    multi_backup: bool = False

    def __post_init__(self):
        if not isinstance(self.header, MappingProxyType):
            object.__setattr__(self, "header", _freeze(self.header))

    def with_header(self, overrides: Optional[Mapping[str, Any]]) -> "TmxConfig":
        """Returns a copy whose header is this header merged with `overrides`."""
        if not overrides:
            return self
        merged = dict(self.header)
        merged.update({str(k): str(v) for k, v in overrides.items()})
        return dc_replace(self, header=_freeze(merged))

    def replace(self, **changes) -> "TmxConfig":
        return dc_replace(self, **changes)


def config_from_dict(data: Mapping[str, Any]) -> TmxConfig:
    """
    Builds a TmxConfig from a plain dict such as the contents of a JSON file.
    `header` entries are merged over the default header; unknown keys are ignored.
    """
    known = {f.name for f in fields(TmxConfig)}
    kwargs: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        kwargs[key] = value

    header_overrides = kwargs.pop("header", None)
    if header_overrides is not None and not isinstance(header_overrides, Mapping):
        logger.error(f"Config 'header' must be a JSON object, got {type(header_overrides).__name__}; using default header")
        header_overrides = None
    for flag in ("backup", "multi_backup"):
        if flag in kwargs:
            kwargs[flag] = bool(kwargs[flag])
    return TmxConfig(**kwargs).with_header(header_overrides)


def load_config(path: str) -> TmxConfig:
    """
    Loads a TmxConfig from a JSON file.
    Falls back to the defaults when the file is missing or unreadable.
    """
    if not os.path.exists(path):
        logger.debug(f"No config file at {path}, using defaults")
        return TmxConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config: {e}")
        return TmxConfig()

    if not isinstance(data, dict):
        logger.error(f"Config file {path} must contain a JSON object")
        return TmxConfig()

    return config_from_dict(data)
