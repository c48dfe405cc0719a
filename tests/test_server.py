"""MCP tool functions called directly"""

import json

import pytest

from wlp_builder import server
from wlp_builder.errors import InternalConsistencyError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for variable in (
        "WLP_PROJECT_NAME", "WLP_VERSION", "WLP_PACKAGE_FOR_STREAMING",
        "WLP_SIMPLIFICATION_TARGET", "WLP_KEEP_OTHER_RESOURCES",
        "WLP_RESERVED_IDS", "WLP_EDITOR_PATH",
    ):
        monkeypatch.delenv(variable, raising=False)


def test_build_project_manifest():
    document = {"nodes": [{"name": "A"}], "meshes": [{}]}

    output = server.build_project_manifest(None, json.dumps(document), "a.glb", simplification_target=0.5)
    result = json.loads(output)

    assert result["next_id"] == 31
    assert result["manifest"]["meshes"]["29"]["simplifyTarget"] == 0.5
    assert result["manifest"]["objects"]["30"]["link"] == {"name": "A", "file": "a.glb"}


def test_build_project_manifest_with_template(tmp_path):
    template = {"objects": {"70": {}}, "shaders": {"1": {"link": {"name": "Flat.frag", "file": "default"}}}}
    path = tmp_path / "base.wlp"
    path.write_text(json.dumps(template), encoding="utf-8")

    result = json.loads(server.build_project_manifest(None, '{"nodes": [{}]}', "a.glb", template_path=str(path)))

    assert list(result["manifest"]["objects"]) == ["71"]


def test_build_project_manifest_reports_errors():
    output = server.build_project_manifest(None, '{"nodes": [{"children": [9]}]}', "bad.glb")

    assert output.startswith("Error building manifest:")
    assert "nodes[0].children[0]" in output


def test_build_project_manifest_rejects_bad_json():
    output = server.build_project_manifest(None, "{", "bad.glb")

    assert output.startswith("Error building manifest:")


def test_template_json_and_path_are_exclusive():
    output = server.build_project_manifest(None, "{}", "a.glb", template_json="{}", template_path="base.wlp")

    assert output.startswith("Error building manifest:")


def test_internal_consistency_error_is_not_caught(monkeypatch):
    def broken_build(*args, **kwargs):
        raise InternalConsistencyError("Object path requested before ids were assigned")

    monkeypatch.setattr(server, "build_manifest", broken_build)

    with pytest.raises(InternalConsistencyError):
        server.build_project_manifest(None, '{"nodes": [{}]}', "a.glb")


def test_inspect_template_project():
    template = {"meshes": {"p0": {"link": {"name": "PrimitivePlane", "file": "default"}}, "12": {}}}

    summary = json.loads(server.inspect_template_project(None, json.dumps(template)))

    assert summary["maxId"] == 12
    assert summary["startId"] == 13
    assert summary["defaults"]["meshes"] == ["p0"]


def test_inspect_broken_template():
    assert server.inspect_template_project(None, "[]").startswith("Error inspecting template project:")


def test_validate_scene_document():
    report = json.loads(server.validate_scene_document(None, '{"nodes": [{"children": [0]}]}', "x.glb"))

    assert report["valid"] is False
    assert report["source_file"] == "x.glb"
