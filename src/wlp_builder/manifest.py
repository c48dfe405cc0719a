"""
Manifest Assembler

Folds normalized scene documents into a target-engine project manifest.

Single asset:
    result = build_manifest(document, "models/player.glb")
    write_manifest(result.manifest, "player.wlp")

Several assets in one manifest (ids never collide, one shared counter):
    assembler = ManifestAssembler(template, settings)
    assembler.add_asset(tree_doc, "models/tree.glb")
    assembler.add_asset(rock_doc, "models/rock.glb", simplification_target=0.5)
    manifest = assembler.assemble()

Each asset is built into a staging registry and merged only after it
succeeded, so a rejected asset leaves the manifest and the id counter exactly
as they were.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import BuildSettings, check_simplification_target
from .errors import ConfigError, InputDocumentError
from .registry import ALLOCATION_ORDER, INPUT_KEYS, IDAllocator, ResourceRegistry
from .scene_graph import SceneGraphBuilder
from .template import CARRYABLE_CATEGORIES, TemplateProject, default_template_project
from .validator import validate_document


logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Outcome of building one manifest"""
    manifest: Dict[str, Any]
    next_id: int
    stats: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "manifest": self.manifest,
            "next_id": self.next_id,
            "stats": self.stats,
            "warnings": self.warnings,
        }


def generate_base_project(template: TemplateProject, settings: BuildSettings) -> Dict[str, Any]:
    """Empty project carrying the template's builtin resources"""
    carried = {
        category: template.defaults_for(category) if settings.keep_other_resources else {}
        for category in CARRYABLE_CATEGORIES
    }

    return {
        "objects": {},
        "meshes": carried["meshes"],
        "textures": carried["textures"],
        "images": carried["images"],
        "materials": carried["materials"],
        "shaders": template.defaults_for("shaders"),
        "animations": {},
        "skins": {},
        "pipelines": template.defaults_for("pipelines"),
        "settings": {
            "project": {
                "name": settings.project_name,
                "version": list(settings.version),
                "packageForStreaming": settings.package_for_streaming,
            }
        },
        "files": [],
    }


def fold_asset(document: Dict[str, Any], registry: ResourceRegistry) -> Dict[str, int]:
    """
    Allocate ids for every resource of a validated document.

    Categories are processed in ALLOCATION_ORDER; scene objects are placed by
    the scene graph between skins and animations.
    """
    for category in ALLOCATION_ORDER:
        records = document.get(INPUT_KEYS[category]) or []
        if category == "object":
            graph = SceneGraphBuilder(records, registry.skin_ids, registry.joint_skins).build()
            graph.assign_ids(registry)
        else:
            registry.register(category, records)

    return dict(registry.counts)


class ManifestAssembler:
    """
    Builds one output manifest from one or more assets.

    Args:
        template: Template project (default: stock builtin resources)
        settings: Build settings (default: BuildSettings())
        start_id: First id to allocate (default: template.start_id(settings.reserved_ids))
    """

    def __init__(
        self,
        template: Optional[TemplateProject] = None,
        settings: Optional[BuildSettings] = None,
        start_id: Optional[int] = None,
    ):
        self.template = template if template is not None else default_template_project()
        self.settings = settings if settings is not None else BuildSettings()

        if start_id is None:
            start_id = self.template.start_id(self.settings.reserved_ids)
        elif start_id <= self.template.max_id:
            raise ConfigError(
                f"Start id {start_id} collides with template ids (max id {self.template.max_id})"
            )
        elif start_id <= self.settings.reserved_ids:
            raise ConfigError(
                f"Start id {start_id} is inside the reserved id range (reserved ids {self.settings.reserved_ids})"
            )

        self.allocator = IDAllocator(start_id)
        self.project = generate_base_project(self.template, self.settings)
        self.stats: Dict[str, Dict[str, int]] = {}
        self.warnings: List[str] = []

    @property
    def next_id(self) -> int:
        return self.allocator.next_id

    def add_asset(
        self,
        document: Dict[str, Any],
        source_file: str,
        simplification_target: Optional[float] = None,
    ) -> Dict[str, int]:
        """
        Fold one asset into the manifest.

        Args:
            document: Normalized scene document
            source_file: Asset reference written to link.file and files[]
            simplification_target: Mesh ratio override for this asset

        Returns:
            Number of ids allocated per category

        Raises:
            InputDocumentError: The document failed validation
        """
        if simplification_target is None:
            simplification_target = self.settings.simplification_target
        check_simplification_target(simplification_target)

        report = validate_document(document, source_file)
        if not report.valid:
            first = report.errors[0]
            raise InputDocumentError(
                f"Invalid scene document: {first.message} at {first.path} "
                f"({report.error_count} error(s))",
                source_file,
                report,
            )

        for issue in report.warnings:
            message = f"{source_file}: {issue.message} at {issue.path}"
            logger.warning(message)
            self.warnings.append(message)

        logger.info(
            f"Folding {source_file} with "
            f"{'no' if simplification_target == 1 else simplification_target} mesh simplification"
        )

        staging = ResourceRegistry(IDAllocator(self.allocator.next_id), source_file, simplification_target)
        counts = fold_asset(document, staging)

        # Staged build succeeded, merge it
        for key, entries in staging.resources.items():
            self.project[key].update(entries)
        self.project["files"].append(source_file)
        self.allocator.advance_to(staging.allocator.next_id)

        self.stats[source_file] = counts
        logger.info(f"Folded {source_file}: {sum(counts.values())} ids, next id {self.next_id}")
        return counts

    def assemble(self) -> Dict[str, Any]:
        """Copy of the manifest in its current state"""
        return copy.deepcopy(self.project)


def build_manifest(
    document: Dict[str, Any],
    source_file: str,
    template: Optional[TemplateProject] = None,
    settings: Optional[BuildSettings] = None,
    start_id: Optional[int] = None,
) -> BuildResult:
    """
    Build a manifest for a single asset.

    Args:
        document: Normalized scene document
        source_file: Asset reference written to link.file and files[]
        template: Template project (default: stock builtin resources)
        settings: Build settings
        start_id: First id to allocate

    Returns:
        BuildResult
    """
    assembler = ManifestAssembler(template, settings, start_id)
    counts = assembler.add_asset(document, source_file)
    return BuildResult(
        manifest=assembler.assemble(),
        next_id=assembler.next_id,
        stats=counts,
        warnings=list(assembler.warnings),
    )


def dumps_manifest(manifest: Dict[str, Any]) -> str:
    return json.dumps(manifest, indent=4)


def write_manifest(manifest: Dict[str, Any], path: str) -> str:
    """Serialize first, then write the whole document at once"""
    text = dumps_manifest(manifest)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
    logger.info(f"Saving project file \"{path}\"")
    return path
