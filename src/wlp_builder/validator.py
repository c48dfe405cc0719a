"""
Scene Document Validator

Checks a normalized scene document before any id is allocated, so a bad
asset is rejected as a whole instead of producing a half-built manifest.

Validation Checks:
- Structure: top-level lists and their entries have the right types
- Hierarchy: child indices in range, one parent per node, no cycles
- References: node skins, skin joints and texture sources point at
  existing entries
"""

import json
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


LIST_KEYS = ("nodes", "meshes", "materials", "animations", "images", "textures", "skins")


class Severity(Enum):
    ERROR = "error"      # Asset is rejected
    WARNING = "warning"  # Asset is built, result may surprise
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single validation issue"""
    severity: Severity
    category: str
    message: str
    path: Optional[str] = None  # JSON path to issue location

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "category": self.category,
            "message": self.message,
            "path": self.path,
        }


@dataclass
class ValidationReport:
    """Complete validation report for one document"""
    source_file: Optional[str] = None
    valid: bool = True
    issues: List[ValidationIssue] = field(default_factory=list)

    def add_error(self, category: str, message: str, path: str = None):
        self.issues.append(ValidationIssue(Severity.ERROR, category, message, path))
        self.valid = False

    def add_warning(self, category: str, message: str, path: str = None):
        self.issues.append(ValidationIssue(Severity.WARNING, category, message, path))

    def add_info(self, category: str, message: str, path: str = None):
        self.issues.append(ValidationIssue(Severity.INFO, category, message, path))

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_file": self.source_file,
            "valid": self.valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "issues": [i.to_dict() for i in self.issues],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def summary(self) -> str:
        """Human-readable summary"""
        lines = [
            f"Validation Report: {self.source_file or '<document>'}",
            f"Status: {'VALID' if self.valid else 'INVALID'}",
            f"Errors: {self.error_count}, Warnings: {self.warning_count}",
        ]

        if self.issues:
            lines.append("\nIssues:")
            for issue in self.issues:
                prefix = "❌" if issue.severity == Severity.ERROR else "⚠️" if issue.severity == Severity.WARNING else "ℹ️"
                lines.append(f"  {prefix} [{issue.category}] {issue.message}")
                if issue.path:
                    lines.append(f"      at {issue.path}")

        return "\n".join(lines)


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class DocumentValidator:
    """Validates normalized scene documents"""

    def __init__(self):
        self.document: Dict[str, Any] = {}
        self.report: Optional[ValidationReport] = None

    def validate(self, document: Any, source_file: Optional[str] = None) -> ValidationReport:
        self.report = ValidationReport(source_file=source_file)

        if not isinstance(document, dict):
            self.report.add_error("structure", f"Document must be an object, got {type(document).__name__}")
            return self.report

        self.document = document

        if not self._validate_structure():
            return self.report

        self._validate_names()
        self._validate_textures()
        self._validate_skins()
        self._validate_nodes()

        return self.report

    def _list(self, key: str) -> List[Any]:
        return self.document.get(key) or []

    def _validate_structure(self) -> bool:
        """Top-level lists hold objects. Later checks rely on this."""
        ok = True
        for key in LIST_KEYS:
            value = self.document.get(key)
            if value is None:
                continue
            if not isinstance(value, list):
                self.report.add_error("structure", f"'{key}' must be a list, got {type(value).__name__}", key)
                ok = False
                continue
            for i, entry in enumerate(value):
                if not isinstance(entry, dict):
                    self.report.add_error("structure", f"Entry must be an object, got {type(entry).__name__}", f"{key}[{i}]")
                    ok = False
        return ok

    def _validate_names(self):
        for key in LIST_KEYS:
            for i, entry in enumerate(self._list(key)):
                name = entry.get("name")
                if name is not None and not isinstance(name, str):
                    self.report.add_error("name", f"Name must be a string, got {type(name).__name__}", f"{key}[{i}].name")

    def _validate_textures(self):
        image_count = len(self._list("images"))
        first_by_source: Dict[Optional[int], int] = {}

        for i, texture in enumerate(self._list("textures")):
            path = f"textures[{i}].source"
            source = texture.get("source")
            if source is None:
                self.report.add_warning("texture", "Texture has no source image", path)
            elif not _is_index(source):
                self.report.add_error("texture", f"Invalid image index: {source!r}", path)
                continue
            elif source >= image_count:
                self.report.add_error("texture", f"Invalid image index: {source}", path)
                continue

            # Textures sharing a source collapse into one manifest texture
            if source in first_by_source:
                self.report.add_info(
                    "texture",
                    f"Texture shares its source with textures[{first_by_source[source]}] and reuses its id",
                    path,
                )
            else:
                first_by_source[source] = i

    def _validate_skins(self):
        node_count = len(self._list("nodes"))
        owners: Dict[int, int] = {}

        for i, skin in enumerate(self._list("skins")):
            path = f"skins[{i}].joints"
            joints = skin.get("joints")
            if not isinstance(joints, list):
                self.report.add_error("skin", "Skin must have a joints list", path)
                continue

            seen = set()
            for j, joint in enumerate(joints):
                if not _is_index(joint) or joint >= node_count:
                    self.report.add_error("skin", f"Invalid node index: {joint!r}", f"{path}[{j}]")
                    continue
                if joint in seen:
                    self.report.add_warning("skin", f"Joint {joint} listed twice", f"{path}[{j}]")
                seen.add(joint)

                if joint in owners and owners[joint] != i:
                    self.report.add_warning(
                        "skin",
                        f"Node {joint} is a joint of skins {owners[joint]} and {i}; skin {i} wins",
                        f"{path}[{j}]",
                    )
                owners[joint] = i

    def _validate_nodes(self):
        nodes = self._list("nodes")
        skin_count = len(self._list("skins"))
        parents: Dict[int, int] = {}
        hierarchy_ok = True

        for i, node in enumerate(nodes):
            path = f"nodes[{i}]"

            skin = node.get("skin")
            if skin is not None and (not _is_index(skin) or skin >= skin_count):
                self.report.add_error("node", f"Invalid skin index: {skin!r}", f"{path}.skin")

            children = node.get("children")
            if children is None:
                continue
            if not isinstance(children, list):
                self.report.add_error("hierarchy", "Children must be a list", f"{path}.children")
                hierarchy_ok = False
                continue

            for j, child in enumerate(children):
                child_path = f"{path}.children[{j}]"
                if not _is_index(child) or child >= len(nodes):
                    self.report.add_error("hierarchy", f"Invalid node index: {child!r}", child_path)
                    hierarchy_ok = False
                elif child == i:
                    self.report.add_error("hierarchy", "Node lists itself as a child", child_path)
                    hierarchy_ok = False
                elif child in parents:
                    self.report.add_error(
                        "hierarchy",
                        f"Node {child} already has parent {parents[child]}",
                        child_path,
                    )
                    hierarchy_ok = False
                else:
                    parents[child] = i

        if hierarchy_ok:
            self._check_reachable(nodes, parents)

    def _check_reachable(self, nodes: List[Dict[str, Any]], parents: Dict[int, int]):
        """Every node must hang off the virtual root; anything else is a cycle"""
        queue = deque(i for i in range(len(nodes)) if i not in parents)
        reached = set(queue)

        while queue:
            index = queue.popleft()
            for child in nodes[index].get("children") or []:
                if child not in reached:
                    reached.add(child)
                    queue.append(child)

        for i in range(len(nodes)):
            if i not in reached:
                self.report.add_error("hierarchy", "Node is part of a parent cycle", f"nodes[{i}]")


def validate_document(document: Any, source_file: Optional[str] = None) -> ValidationReport:
    """
    Validate a normalized scene document.

    Args:
        document: Parsed scene description
        source_file: Asset reference for the report

    Returns:
        ValidationReport with all issues
    """
    validator = DocumentValidator()
    return validator.validate(document, source_file)
