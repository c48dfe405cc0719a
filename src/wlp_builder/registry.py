"""
Resource Registry

Assigns project ids to every resource of one input asset and records the
manifest entry for each id.

A single counter is shared by all categories. Categories are allocated in a
fixed order that never depends on the input document's key order:

    images -> textures -> materials -> meshes -> skins -> objects -> animations

Naming defaults:
- images, materials, meshes, skins, animations: "<category>_<n>" when the
  entry has no name, where n counts only the unnamed entries of that category
- textures: always "texture_<n>" where n is the entry index. Entries that
  share a source image share one id, so the names of deduplicated textures
  skip numbers.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .errors import InternalConsistencyError


logger = logging.getLogger(__name__)


ALLOCATION_ORDER = ("image", "texture", "material", "mesh", "skin", "object", "animation")

# Category -> key of its id-keyed mapping in the output manifest
OUTPUT_KEYS = {
    "image": "images",
    "texture": "textures",
    "material": "materials",
    "mesh": "meshes",
    "skin": "skins",
    "object": "objects",
    "animation": "animations",
}

# Category -> key of its list in the normalized input document
INPUT_KEYS = {
    "image": "images",
    "texture": "textures",
    "material": "materials",
    "mesh": "meshes",
    "skin": "skins",
    "object": "nodes",
    "animation": "animations",
}


class IDAllocator:
    """Monotonic id counter shared across every resource category"""

    def __init__(self, start: int):
        self._next = start

    @property
    def next_id(self) -> int:
        return self._next

    def allocate(self, category: str) -> int:
        if category not in OUTPUT_KEYS:
            raise InternalConsistencyError(f"Unknown allocation category: {category!r}")

        new_id = self._next
        self._next += 1
        return new_id

    def advance_to(self, next_id: int):
        """Move the counter forward after a staged build was merged"""
        if next_id < self._next:
            raise InternalConsistencyError(
                f"ID counter cannot move backwards ({self._next} -> {next_id})"
            )
        self._next = next_id


class ResourceRegistry:
    """
    Id-keyed manifest entries for one input asset.

    Args:
        allocator: Shared id counter
        source_file: Asset reference written to every link.file
        simplification_target: Mesh simplification ratio (1 = none)
    """

    def __init__(self, allocator: IDAllocator, source_file: str, simplification_target: float = 1.0):
        self.allocator = allocator
        self.source_file = source_file
        self.simplification_target = simplification_target

        self.resources: Dict[str, Dict[str, Dict[str, Any]]] = {
            key: {} for key in OUTPUT_KEYS.values()
        }
        self.counts: Dict[str, int] = {category: 0 for category in ALLOCATION_ORDER}

        # Filled while registering skins, consumed by the scene graph
        self.skin_ids: List[int] = []          # input skin index -> skin id
        self.joint_skins: Dict[int, int] = {}  # joint node index -> skin id

        self._default_names: Dict[str, int] = {category: 0 for category in ALLOCATION_ORDER}
        self._skin_joints: Dict[int, List[str]] = {}

    def allocate(self, category: str, descriptor: Dict[str, Any]) -> int:
        """Allocate the next id for a category and store its manifest entry"""
        new_id = self.allocator.allocate(category)
        self.resources[OUTPUT_KEYS[category]][str(new_id)] = descriptor
        self.counts[category] += 1
        logger.debug(f"Allocated {category} {new_id}: {descriptor['link']['name']}")
        return new_id

    def register(self, category: str, records: Iterable[Dict[str, Any]]) -> List[int]:
        """Register every input record of a non-object category"""
        handlers = {
            "image": self.register_images,
            "texture": self.register_textures,
            "material": self.register_materials,
            "mesh": self.register_meshes,
            "skin": self.register_skins,
            "animation": self.register_animations,
        }
        handler = handlers.get(category)
        if handler is None:
            raise InternalConsistencyError(f"No registration handler for category {category!r}")
        return handler(records)

    def register_images(self, images: Iterable[Dict[str, Any]]) -> List[int]:
        return [self._register_named("image", image) for image in images]

    def register_textures(self, textures: Iterable[Dict[str, Any]]) -> List[int]:
        """Register textures, one id per distinct source image"""
        by_source: Dict[Optional[int], int] = {}
        ids = []

        for index, texture in enumerate(textures):
            source = texture.get("source")
            if source not in by_source:
                by_source[source] = self.allocate("texture", {"link": self.link(f"texture_{index}")})
            ids.append(by_source[source])

        return ids

    def register_materials(self, materials: Iterable[Dict[str, Any]]) -> List[int]:
        return [self._register_named("material", material) for material in materials]

    def register_meshes(self, meshes: Iterable[Dict[str, Any]]) -> List[int]:
        ids = []
        for mesh in meshes:
            entry = {"link": self.link(self._display_name("mesh", mesh.get("name")))}
            if self.simplification_target != 1:
                entry["simplify"] = True
                entry["simplifyTarget"] = self.simplification_target
            ids.append(self.allocate("mesh", entry))
        return ids

    def register_skins(self, skins: Iterable[Dict[str, Any]]) -> List[int]:
        """
        Register skins.

        The joints list of each skin starts empty; it is filled through
        register_skin_joint() once the scene graph assigns object ids.
        When a node is a joint of several skins the last skin wins.
        """
        for skin in skins:
            joints: List[str] = []
            skin_id = self.allocate("skin", {
                "link": self.link(self._display_name("skin", skin.get("name"))),
                "joints": joints,
            })
            self._skin_joints[skin_id] = joints
            self.skin_ids.append(skin_id)

            for joint in skin.get("joints") or []:
                self.joint_skins[joint] = skin_id

        return list(self.skin_ids)

    def register_animations(self, animations: Iterable[Dict[str, Any]]) -> List[int]:
        return [self._register_named("animation", animation) for animation in animations]

    def register_skin_joint(self, skin_id: int, object_id: int):
        joints = self._skin_joints.get(skin_id)
        if joints is None:
            raise InternalConsistencyError(f"Joint registered for unknown skin {skin_id}")
        joints.append(str(object_id))

    def link(self, name: str) -> Dict[str, str]:
        return {"name": name, "file": self.source_file}

    def _register_named(self, category: str, record: Dict[str, Any]) -> int:
        return self.allocate(category, {"link": self.link(self._display_name(category, record.get("name")))})

    def _display_name(self, category: str, name: Optional[str]) -> str:
        if name:
            return name

        number = self._default_names[category]
        self._default_names[category] += 1
        return f"{category}_{number}"
