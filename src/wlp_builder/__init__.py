"""
WLP Builder

Turns normalized glTF scene documents into Wonderland Engine project
manifests (.wlp) ready for headless packaging.

Features:
- Scene graph: rooted object hierarchy with stable pre-order ids and paths
- Resources: images, textures (deduplicated by source), materials, meshes
  (optional simplification), skins with joint lists, animations
- Templates: builtin shaders/pipelines and the starting id from a prior project
- Incremental builds: several assets folded into one manifest with one id counter

Quick Start:
    from wlp_builder import build_manifest, write_manifest

    result = build_manifest(gltf_json, "models/player.glb")
    write_manifest(result.manifest, "player.wlp")
"""

from .config import BuildSettings
from .errors import (
    WLPBuilderError,
    BoundaryError,
    ConfigError,
    InputDocumentError,
    TemplateProjectError,
    PackagingError,
    InternalConsistencyError,
)
from .registry import IDAllocator, ResourceRegistry, ALLOCATION_ORDER
from .scene_graph import SceneGraph, SceneGraphBuilder
from .template import (
    TemplateProject,
    parse_template_project,
    load_template_project,
    loads_template_project,
    default_template_project,
)
from .validator import validate_document, ValidationReport
from .manifest import (
    ManifestAssembler,
    BuildResult,
    build_manifest,
    generate_base_project,
    dumps_manifest,
    write_manifest,
)
from .packaging import PackagingRequest, package_project, default_editor_path

__all__ = [
    # Main entry point
    'build_manifest',
    'ManifestAssembler',
    'BuildResult',
    'generate_base_project',
    'dumps_manifest',
    'write_manifest',
    # Configuration
    'BuildSettings',
    # Core
    'IDAllocator',
    'ResourceRegistry',
    'ALLOCATION_ORDER',
    'SceneGraph',
    'SceneGraphBuilder',
    # Templates
    'TemplateProject',
    'parse_template_project',
    'load_template_project',
    'loads_template_project',
    'default_template_project',
    # Validation
    'validate_document',
    'ValidationReport',
    # Packaging
    'PackagingRequest',
    'package_project',
    'default_editor_path',
    # Errors
    'WLPBuilderError',
    'BoundaryError',
    'ConfigError',
    'InputDocumentError',
    'TemplateProjectError',
    'PackagingError',
    'InternalConsistencyError',
]
