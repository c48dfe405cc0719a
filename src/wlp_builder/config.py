"""
Build configuration.

Settings live in a plain dataclass. Every field can be overridden from the
environment with BuildSettings.from_env():

    WLP_PROJECT_NAME            settings.project.name in the manifest
    WLP_VERSION                 "major.minor.patch" of the target editor
    WLP_PACKAGE_FOR_STREAMING   1/0, true/false
    WLP_SIMPLIFICATION_TARGET   default mesh simplification ratio (1 = off)
    WLP_KEEP_OTHER_RESOURCES    carry template meshes/textures/images/materials
    WLP_RESERVED_IDS            minimum id floor for generated resources
    WLP_EDITOR_PATH             packaging executable
"""

import os
from dataclasses import dataclass, replace
from typing import Dict, Optional, Tuple

from .errors import ConfigError


DEFAULT_PROJECT_NAME = "output"
DEFAULT_VERSION = (0, 8, 10)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass
class BuildSettings:
    """Settings for one build"""

    # Manifest settings block
    project_name: str = DEFAULT_PROJECT_NAME
    version: Tuple[int, int, int] = DEFAULT_VERSION
    package_for_streaming: bool = True

    # Meshes
    simplification_target: float = 1.0  # 1 = no simplification

    # Template merge
    keep_other_resources: bool = False
    reserved_ids: int = 0

    # Packaging
    editor_path: Optional[str] = None

    def __post_init__(self):
        self.validate()

    def validate(self):
        if not isinstance(self.version, (tuple, list)) or len(self.version) != 3:
            raise ConfigError(f"Version must have 3 components, got {self.version!r}")
        if any(not isinstance(v, int) or isinstance(v, bool) or v < 0 for v in self.version):
            raise ConfigError(f"Version components must be non-negative integers, got {self.version!r}")
        self.version = tuple(self.version)

        if not isinstance(self.reserved_ids, int) or self.reserved_ids < 0:
            raise ConfigError(f"Reserved IDs must be a non-negative integer, got {self.reserved_ids!r}")

        check_simplification_target(self.simplification_target)

    @property
    def simplify(self) -> bool:
        return self.simplification_target != 1

    def with_overrides(self, **overrides) -> "BuildSettings":
        """Copy with the given non-None fields replaced"""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None, **defaults) -> "BuildSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)
            **defaults: Field values used when a variable is not set

        Returns:
            BuildSettings
        """
        if environ is None:
            environ = os.environ

        values = dict(defaults)

        name = environ.get("WLP_PROJECT_NAME")
        if name:
            values["project_name"] = name

        version = environ.get("WLP_VERSION")
        if version:
            values["version"] = parse_version(version, "WLP_VERSION")

        streaming = environ.get("WLP_PACKAGE_FOR_STREAMING")
        if streaming:
            values["package_for_streaming"] = _parse_bool(streaming, "WLP_PACKAGE_FOR_STREAMING")

        target = environ.get("WLP_SIMPLIFICATION_TARGET")
        if target:
            try:
                values["simplification_target"] = float(target)
            except ValueError:
                raise ConfigError(f"WLP_SIMPLIFICATION_TARGET must be a number, got {target!r}")

        keep = environ.get("WLP_KEEP_OTHER_RESOURCES")
        if keep:
            values["keep_other_resources"] = _parse_bool(keep, "WLP_KEEP_OTHER_RESOURCES")

        reserved = environ.get("WLP_RESERVED_IDS")
        if reserved:
            try:
                values["reserved_ids"] = int(reserved)
            except ValueError:
                raise ConfigError(f"WLP_RESERVED_IDS must be an integer, got {reserved!r}")

        editor = environ.get("WLP_EDITOR_PATH")
        if editor:
            values["editor_path"] = editor

        return cls(**values)


def check_simplification_target(target) -> float:
    if isinstance(target, bool) or not isinstance(target, (int, float)):
        raise ConfigError(f"Simplification target must be a number, got {target!r}")
    if not (0 < target <= 1):
        raise ConfigError(f"Simplification target must be in (0, 1], got {target}")
    return target


def parse_version(text: str, source: str = "version") -> Tuple[int, int, int]:
    """Parse "major.minor.patch" into a tuple"""
    parts = text.strip().split(".")
    if len(parts) != 3:
        raise ConfigError(f"{source} must look like major.minor.patch, got {text!r}")
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        raise ConfigError(f"{source} must contain only integers, got {text!r}")


def _parse_bool(text: str, source: str) -> bool:
    lowered = text.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{source} must be a boolean, got {text!r}")
