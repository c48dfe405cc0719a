# wlp_builder/server.py
from mcp.server.fastmcp import FastMCP, Context
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any, Optional

from .config import BuildSettings
from .errors import BoundaryError, InputDocumentError
from .manifest import build_manifest
from .template import default_template_project, load_template_project, loads_template_project
from .validator import validate_document

# Configure logging
logging.basicConfig(level=logging.INFO,
                    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger("WLPBuilderServer")


@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    """Manage server startup and shutdown lifecycle"""
    try:
        logger.info("WLPBuilder server starting up")
        yield {}
    finally:
        logger.info("WLPBuilder server shut down")


mcp = FastMCP(
    "WLPBuilder",
    lifespan=server_lifespan
)


def _parse_json(text: str, what: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise InputDocumentError(f"{what} is not valid JSON: {e}") from e


def _resolve_template(template_json: Optional[str], template_path: Optional[str]):
    if template_json and template_path:
        raise BoundaryError("Pass either template_json or template_path, not both")
    if template_json:
        return loads_template_project(template_json)
    if template_path:
        return load_template_project(template_path)
    return default_template_project()


@mcp.tool()
def build_project_manifest(
    ctx: Context,
    document_json: str,
    source_file: str,
    template_json: str = None,
    template_path: str = None,
    simplification_target: float = None,
    keep_other_resources: bool = None,
    reserved_ids: int = None,
    start_id: int = None,
) -> str:
    """
    Build a project manifest from a normalized glTF scene document.

    Parameters:
    - document_json: The scene document (nodes, meshes, materials, skins, animations, images, textures) as JSON
    - source_file: Asset reference written into every link.file and the files list
    - template_json: Optional prior project manifest as JSON, used for builtin resources and the starting id
    - template_path: Optional path to a prior project manifest (alternative to template_json)
    - simplification_target: Mesh simplification ratio, 1 for none (default from WLP_SIMPLIFICATION_TARGET)
    - keep_other_resources: Also carry template meshes, textures, images and materials
    - reserved_ids: Minimum id floor for generated resources
    - start_id: Explicit first id, overrides the computed start

    Returns JSON with the manifest, the next free id, per-category counts and warnings.
    """
    try:
        settings = BuildSettings.from_env().with_overrides(
            simplification_target=simplification_target,
            keep_other_resources=keep_other_resources,
            reserved_ids=reserved_ids,
        )
        template = _resolve_template(template_json, template_path)
        document = _parse_json(document_json, "Scene document")

        result = build_manifest(document, source_file, template, settings, start_id)
        return json.dumps(result.to_dict(), indent=2)
    except InputDocumentError as e:
        logger.error(f"Error building manifest: {str(e)}")
        if e.report is not None:
            return f"Error building manifest: {str(e)}\n{e.report.summary()}"
        return f"Error building manifest: {str(e)}"
    except BoundaryError as e:
        logger.error(f"Error building manifest: {str(e)}")
        return f"Error building manifest: {str(e)}"


@mcp.tool()
def inspect_template_project(ctx: Context, template_json: str = None, template_path: str = None) -> str:
    """
    Summarize a template project: its maximum numeric id, the first id a new build would use,
    and the builtin (link.file == "default") resources per category.

    Parameters:
    - template_json: Prior project manifest as JSON
    - template_path: Path to a prior project manifest (alternative to template_json)
    """
    try:
        template = _resolve_template(template_json, template_path)
        summary = template.to_dict()
        summary["startId"] = template.start_id(BuildSettings.from_env().reserved_ids)
        return json.dumps(summary, indent=2)
    except BoundaryError as e:
        logger.error(f"Error inspecting template project: {str(e)}")
        return f"Error inspecting template project: {str(e)}"


@mcp.tool()
def validate_scene_document(ctx: Context, document_json: str, source_file: str = None) -> str:
    """
    Check a normalized scene document without building anything.

    Parameters:
    - document_json: The scene document as JSON
    - source_file: Optional asset reference shown in the report
    """
    try:
        document = _parse_json(document_json, "Scene document")
        return validate_document(document, source_file).to_json()
    except BoundaryError as e:
        logger.error(f"Error validating scene document: {str(e)}")
        return f"Error validating scene document: {str(e)}"


def main():
    """Run the MCP server"""
    mcp.run()

if __name__ == "__main__":
    main()
