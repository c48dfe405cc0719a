"""Scene document validation"""

from wlp_builder.validator import Severity, validate_document


def error_paths(report):
    return [issue.path for issue in report.errors]


def test_valid_document():
    report = validate_document({
        "nodes": [{"name": "root", "children": [1]}, {"skin": 0}],
        "skins": [{"joints": [0]}],
        "images": [{}],
        "textures": [{"source": 0}],
        "meshes": [{"name": "m"}],
    }, "model.glb")

    assert report.valid
    assert report.issues == []
    assert report.source_file == "model.glb"


def test_empty_document_is_valid():
    assert validate_document({}).valid


def test_document_must_be_an_object():
    report = validate_document([])

    assert not report.valid
    assert report.errors[0].category == "structure"


def test_lists_and_entries_must_have_the_right_type():
    report = validate_document({"nodes": {"0": {}}, "meshes": [{}, "mesh"]})

    assert not report.valid
    assert error_paths(report) == ["nodes", "meshes[1]"]


def test_names_must_be_strings():
    report = validate_document({"materials": [{"name": 5}]})

    assert error_paths(report) == ["materials[0].name"]


def test_child_index_out_of_range():
    report = validate_document({"nodes": [{"children": [1, 5]}, {}]})

    assert error_paths(report) == ["nodes[0].children[1]"]


def test_node_cannot_be_its_own_child():
    report = validate_document({"nodes": [{"children": [0]}]})

    assert error_paths(report) == ["nodes[0].children[0]"]


def test_node_with_two_parents():
    report = validate_document({"nodes": [{"children": [2]}, {"children": [2]}, {}]})

    assert error_paths(report) == ["nodes[1].children[0]"]
    assert "already has parent 0" in report.errors[0].message


def test_parent_cycle_is_rejected():
    report = validate_document({"nodes": [{}, {"children": [2]}, {"children": [1]}]})

    assert not report.valid
    assert error_paths(report) == ["nodes[1]", "nodes[2]"]


def test_node_skin_must_exist():
    report = validate_document({"nodes": [{"skin": 1}], "skins": [{"joints": []}]})

    assert error_paths(report) == ["nodes[0].skin"]


def test_skin_needs_a_joints_list():
    report = validate_document({"nodes": [{}], "skins": [{"name": "rig"}]})

    assert error_paths(report) == ["skins[0].joints"]


def test_skin_joint_out_of_range():
    report = validate_document({"nodes": [{}], "skins": [{"joints": [0, 3]}]})

    assert error_paths(report) == ["skins[0].joints[1]"]


def test_joint_shared_between_skins_is_a_warning():
    report = validate_document({
        "nodes": [{}, {}],
        "skins": [{"joints": [0, 1]}, {"joints": [1]}],
    })

    assert report.valid
    assert [issue.path for issue in report.warnings] == ["skins[1].joints[0]"]


def test_texture_source_must_exist():
    report = validate_document({"images": [{}], "textures": [{"source": 1}, {"source": "0"}]})

    assert error_paths(report) == ["textures[0].source", "textures[1].source"]


def test_texture_without_source_is_a_warning():
    report = validate_document({"textures": [{}]})

    assert report.valid
    assert report.warnings[0].severity == Severity.WARNING


def test_textures_sharing_a_source_are_noted():
    report = validate_document({
        "images": [{}, {}],
        "textures": [{"source": 0}, {"source": 1}, {"source": 0}],
    })

    assert report.valid
    assert report.warnings == []
    assert [(i.severity, i.path) for i in report.issues] == [(Severity.INFO, "textures[2].source")]
    assert "textures[0]" in report.issues[0].message


def test_report_serialization():
    report = validate_document({"nodes": [{"children": [0]}]}, "bad.glb")

    data = report.to_dict()
    assert data["valid"] is False
    assert data["error_count"] == 1
    assert data["issues"][0]["path"] == "nodes[0].children[0]"
    assert "bad.glb" in report.summary()
