"""Template project parsing"""

import json

import pytest

from wlp_builder.errors import TemplateProjectError
from wlp_builder.template import (
    TemplateProject,
    default_template_project,
    load_template_project,
    loads_template_project,
    numeric_id,
    parse_template_project,
)


def link(name, file="default"):
    return {"link": {"name": name, "file": file}}


def test_max_id_ignores_symbolic_keys():
    template = parse_template_project({
        "meshes": {"5": link("a"), "12": link("b"), "foo": link("c")},
    })

    assert template.max_id == 12


def test_max_id_spans_every_id_keyed_category():
    template = parse_template_project({
        "objects": {"40": {"link": {"name": "player", "file": "player.glb"}}},
        "shaders": {"3": link("Flat.frag")},
        "skins": {"41": {"joints": []}},
        "animations": {"7": link("walk", "player.glb")},
    })

    assert template.max_id == 41


def test_empty_template():
    template = parse_template_project({})

    assert template.max_id == 0
    assert template.start_id() == 1


def test_defaults_keep_only_builtin_entries():
    template = parse_template_project({
        "shaders": {"1": link("Depth.frag"), "40": link("Custom.frag", "shaders/custom.frag")},
        "pipelines": {"2": link("Depth")},
        "meshes": {"p0": link("PrimitivePlane"), "41": link("Rock", "rock.glb")},
        "materials": {"42": {"pipeline": "2"}},
        "objects": {"43": link("Camera")},
    })

    assert template.defaults["shaders"] == {"1": link("Depth.frag")}
    assert template.defaults["pipelines"] == {"2": link("Depth")}
    assert template.defaults["meshes"] == {"p0": link("PrimitivePlane")}
    assert template.defaults["materials"] == {}
    assert "objects" not in template.defaults
    assert template.max_id == 43


def test_start_id_respects_reserved_ids():
    template = TemplateProject(max_id=28)

    assert template.start_id() == 29
    assert template.start_id(10) == 29
    assert template.start_id(100) == 101


def test_defaults_for_returns_copies():
    template = parse_template_project({"shaders": {"1": link("Depth.frag")}})

    shaders = template.defaults_for("shaders")
    shaders["1"]["link"]["name"] = "changed"
    shaders["2"] = link("other")

    assert template.defaults_for("shaders") == {"1": link("Depth.frag")}


def test_parsed_template_does_not_alias_input():
    document = {"shaders": {"1": link("Depth.frag")}}
    template = parse_template_project(document)

    document["shaders"]["1"]["link"]["name"] = "changed"

    assert template.defaults["shaders"]["1"]["link"]["name"] == "Depth.frag"


def test_default_template():
    template = default_template_project()

    assert template.max_id == 28
    assert len(template.defaults["shaders"]) == 15
    assert len(template.defaults["pipelines"]) == 13
    assert sorted(template.defaults["meshes"]) == ["p0", "p1", "p2", "p3", "p4", "p5"]
    assert list(template.defaults["materials"]) == ["DefaultFontMaterial"]
    assert template.defaults["pipelines"]["28"]["link"]["name"] == "Sky"


def test_numeric_id():
    assert numeric_id("12") == 12
    assert numeric_id("p0") is None
    assert numeric_id("DefaultFontMaterial") is None
    assert numeric_id("") is None
    assert numeric_id("1_000") is None
    assert numeric_id(" 7") is None
    assert numeric_id("7 ") is None
    assert numeric_id("٣") is None  # Arabic-Indic digit three
    assert numeric_id("1.5") is None


def test_loosely_spelled_keys_do_not_raise_max_id():
    template = parse_template_project({
        "meshes": {"1_000": {}, "5": {}, " 900": {}, "٩٩": {}},
    })

    assert template.max_id == 5
    assert template.start_id() == 6


def test_non_object_document_is_rejected():
    with pytest.raises(TemplateProjectError):
        parse_template_project([1, 2, 3])


def test_non_object_category_is_rejected():
    with pytest.raises(TemplateProjectError, match="shaders"):
        parse_template_project({"shaders": ["Depth.frag"]}, "base.wlp")


def test_load_template_from_file(tmp_path):
    path = tmp_path / "base.wlp"
    path.write_text(json.dumps({"pipelines": {"9": link("Phong Opaque")}}), encoding="utf-8")

    template = load_template_project(str(path))

    assert template.max_id == 9
    assert template.path == str(path)
    assert template.defaults["pipelines"] == {"9": link("Phong Opaque")}


def test_load_invalid_json_names_the_template(tmp_path):
    path = tmp_path / "broken.wlp"
    path.write_text("{ not json", encoding="utf-8")

    with pytest.raises(TemplateProjectError) as excinfo:
        load_template_project(str(path))

    assert excinfo.value.template_path == str(path)
    assert "broken.wlp" in str(excinfo.value)


def test_load_missing_file(tmp_path):
    with pytest.raises(TemplateProjectError):
        load_template_project(str(tmp_path / "missing.wlp"))


def test_loads_template_project():
    template = loads_template_project('{"shaders": {"3": {"link": {"name": "x", "file": "default"}}}}')

    assert template.max_id == 3

    with pytest.raises(TemplateProjectError):
        loads_template_project("nope")


def test_to_dict_lists_default_keys():
    template = parse_template_project({
        "meshes": {"p1": link("Cube"), "p0": link("Plane")},
        "shaders": {"10": link("b"), "2": link("a")},
    })

    summary = template.to_dict()

    assert summary["maxId"] == 10
    assert summary["defaults"]["shaders"] == ["2", "10"]
    assert summary["defaults"]["meshes"] == ["p0", "p1"]
