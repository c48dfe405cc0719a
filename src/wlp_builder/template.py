"""
Template Project Merger

Reads a prior project manifest and extracts what a new build needs from it:

- max_id: the largest numeric id used by any id-keyed category. Symbolic keys
  such as the primitive meshes ("p0", "p1", ...) are ignored.
- defaults: per category, the entries built into the target engine, i.e.
  whose link.file is the "default" sentinel.

Shaders and pipelines are always carried into new builds. Meshes, textures,
images and materials are carried only when keep_other_resources is set.
New ids start at max(reserved_ids, max_id) + 1.

Usage:
    template = load_template_project("base.wlp")
    start = template.start_id(reserved_ids=100)
"""

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .errors import TemplateProjectError


logger = logging.getLogger(__name__)


DEFAULT_FILE = "default"

# Plain ASCII decimal keys only; "1_000", " 7" and other int() spellings are symbolic
_NUMERIC_KEY = re.compile(r"-?[0-9]+")

ID_KEYED_CATEGORIES = (
    "objects", "meshes", "textures", "images", "materials",
    "shaders", "animations", "skins", "pipelines",
)

BUILTIN_CATEGORIES = ("shaders", "pipelines")
CARRYABLE_CATEGORIES = ("meshes", "textures", "images", "materials")
DEFAULT_ELIGIBLE_CATEGORIES = CARRYABLE_CATEGORIES + BUILTIN_CATEGORIES


@dataclass(frozen=True)
class TemplateProject:
    """Seed data recovered from a prior manifest. Never mutated."""
    max_id: int
    defaults: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    path: Optional[str] = None

    def start_id(self, reserved_ids: int = 0) -> int:
        return max(reserved_ids, self.max_id) + 1

    def defaults_for(self, category: str) -> Dict[str, Any]:
        """Deep copy of the builtin entries of one category"""
        return copy.deepcopy(dict(self.defaults.get(category, {})))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "maxId": self.max_id,
            "defaults": {category: sorted(entries, key=_sort_key)
                         for category, entries in self.defaults.items()},
        }


def numeric_id(key: Any) -> Optional[int]:
    """Integer value of a manifest key, or None for symbolic keys"""
    if isinstance(key, int) and not isinstance(key, bool):
        return key
    if not isinstance(key, str) or not _NUMERIC_KEY.fullmatch(key):
        return None
    return int(key)


def is_builtin(entry: Any) -> bool:
    link = entry.get("link") if isinstance(entry, dict) else None
    return isinstance(link, dict) and link.get("file") == DEFAULT_FILE


def parse_template_project(document: Any, path: Optional[str] = None) -> TemplateProject:
    """
    Extract max id and builtin resources from a parsed manifest.

    Args:
        document: Parsed manifest JSON
        path: Where the document came from, for error messages

    Returns:
        TemplateProject

    Raises:
        TemplateProjectError: The document is not a manifest
    """
    if not isinstance(document, dict):
        raise TemplateProjectError(
            f"Template project must be a JSON object, got {type(document).__name__}", path
        )

    max_id = 0
    defaults: Dict[str, Dict[str, Any]] = {category: {} for category in DEFAULT_ELIGIBLE_CATEGORIES}

    for category in ID_KEYED_CATEGORIES:
        if category not in document:
            continue

        entries = document[category]
        if not isinstance(entries, dict):
            raise TemplateProjectError(
                f"Template category '{category}' must be an id-keyed object, got {type(entries).__name__}",
                path,
            )

        for key, entry in entries.items():
            value = numeric_id(key)
            if value is not None and value > max_id:
                max_id = value

            if category in defaults and is_builtin(entry):
                defaults[category][key] = copy.deepcopy(entry)

    builtin_count = sum(len(entries) for entries in defaults.values())
    logger.info(f"Parsed template project {path or '<inline>'}: max id {max_id}, {builtin_count} builtin resources")

    return TemplateProject(max_id=max_id, defaults=defaults, path=path)


def load_template_project(path: str) -> TemplateProject:
    """Read and parse a template project file"""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            document = json.load(f)
    except OSError as e:
        raise TemplateProjectError(f"Cannot read template project: {e}", path) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TemplateProjectError(f"Template project is not valid JSON: {e}", path) from e

    return parse_template_project(document, path)


def loads_template_project(text: str, path: Optional[str] = None) -> TemplateProject:
    """Parse a template project from a JSON string"""
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise TemplateProjectError(f"Template project is not valid JSON: {e}", path) from e

    return parse_template_project(document, path)


def _builtin(names: Dict[str, str]) -> Dict[str, Any]:
    return {key: {"link": {"name": name, "file": DEFAULT_FILE}} for key, name in names.items()}


# Builtin resources of a stock project, used when no template is given
DEFAULT_TEMPLATE_DOCUMENT = {
    "meshes": _builtin({
        "p0": "PrimitivePlane",
        "p1": "PrimitiveCube",
        "p2": "PrimitiveSphere",
        "p3": "PrimitiveCone",
        "p4": "PrimitiveCylinder",
        "p5": "PrimitiveCircle",
    }),
    "textures": {},
    "images": {},
    "materials": _builtin({
        "DefaultFontMaterial": "DefaultFontMaterial",
    }),
    "shaders": _builtin({
        "1": "Background.frag",
        "2": "Depth.frag",
        "4": "DistanceFieldVector.frag",
        "6": "Dynamic.vert",
        "7": "Flat.frag",
        "10": "FullScreenTriangle.vert",
        "11": "MeshVisualizer.frag",
        "13": "Phong.frag",
        "16": "Physical.frag",
        "19": "Skinning.vert",
        "20": "Sky.frag",
        "21": "Text.frag",
        "23": "Text.vert",
        "24": "TileFeedback.frag",
        "25": "Particle.frag",
    }),
    "pipelines": _builtin({
        "3": "Depth",
        "5": "DistanceFieldVector",
        "8": "Flat Opaque",
        "9": "Flat Opaque Textured",
        "12": "MeshVisualizer",
        "14": "Phong Opaque",
        "15": "Phong Opaque Textured",
        "17": "Physical Opaque",
        "18": "Physical Opaque Textured",
        "22": "Text",
        "26": "Foliage",
        "27": "Particle",
        "28": "Sky",
    }),
}


def default_template_project() -> TemplateProject:
    return parse_template_project(DEFAULT_TEMPLATE_DOCUMENT)


def _sort_key(key: str):
    value = numeric_id(key)
    return (0, value, "") if value is not None else (1, 0, key)
