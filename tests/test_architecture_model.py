"""
tests/test_architecture_model.py — Dataclass parsing and lenient sanitisation on load.

Covers:
    1. Legacy camelCase documents load into snake_case fields
    2. Entities missing their identity are dropped on load
    3. Constraint sanitisation keeps the first valid constraint per kind
    4. Element kept only on array attributes
    5. Authoring path keeps everything for the validators
"""

from architekt.models.architecture import (
    Attribute,
    Constraint,
    DomainAggregate,
    Flow,
    Step,
    coerce_constraint,
    parse_enum_values,
)


def _legacy_document():
    return {
        "projects": {
            "p1": {
                "id": "p1",
                "name": "Shop",
                "rootSystemId": "R",
                "sharedWith": ["bob", "bob", 7],
                "tags": [" web ", "web", 3],
                "systems": {
                    "R": {"id": "R", "name": "Shop", "isRoot": True, "childIds": ["A"]},
                    "A": {"id": "A", "name": "Cart"},
                    "X": {"id": "X"},
                },
                "flows": {
                    "f1": {
                        "id": "f1",
                        "name": "Checkout",
                        "systemScopeIds": ["R", "A"],
                        "steps": [
                            {"id": "s1", "name": "pay", "sourceSystemId": "A", "targetSystemId": "R",
                             "alternateFlowIds": ["f2"]},
                            {"id": "s2", "name": ""},
                        ],
                    },
                },
                "dataModels": {
                    "d1": {
                        "id": "d1",
                        "name": "Order",
                        "attributes": [
                            {"id": "a1", "name": "total", "type": "number",
                             "constraints": [{"type": "min", "value": "0"}, {"type": "min", "value": 5},
                                             {"type": "max", "value": "lots"}]},
                            {"id": "a2", "name": "lines", "type": "array",
                             "element": {"id": "a3", "name": "line", "type": "object"}},
                            {"id": "a4", "name": "note", "type": "string",
                             "element": {"id": "a5", "name": "x", "type": "string"}},
                            {"name": "no id", "type": "string"},
                        ],
                    },
                },
                "components": {"c1": {"id": "c1", "name": "API", "entryPointIds": ["e1"]}},
                "entryPoints": {
                    "e1": {"id": "e1", "name": "create", "type": "http", "requestModelIds": ["d1"]},
                    "e2": {"id": "e2", "name": "untyped"},
                },
            },
            "broken": {"id": "broken", "name": "No root"},
        },
    }


class TestLenientLoad:
    def test_legacy_keys_and_identity_filter(self):
        aggregate = DomainAggregate.from_dict(_legacy_document())
        assert list(aggregate.projects) == ["p1"]
        project = aggregate.projects["p1"]
        assert project.root_system_id == "R"
        assert project.tags == ["web"]
        assert set(project.systems) == {"R", "A"}
        assert project.systems["R"].is_root is True
        assert project.systems["R"].child_ids == ["A"]

    def test_shared_with_survives_round_trip(self):
        project = DomainAggregate.from_dict(_legacy_document()).projects["p1"]
        assert project.shared_with == ["bob"]
        reloaded = DomainAggregate.from_dict(DomainAggregate(projects={"p1": project}).to_dict())
        assert reloaded.projects["p1"].shared_with == ["bob"]
        assert reloaded.projects["p1"].summary()["shared_with"] == ["bob"]

    def test_flow_steps(self):
        flow = DomainAggregate.from_dict(_legacy_document()).projects["p1"].flows["f1"]
        assert [s.id for s in flow.steps] == ["s1"]
        assert flow.steps[0].alternate_flow_ids == ["f2"]
        assert flow.system_scope_ids == ["R", "A"]

    def test_attributes_sanitised(self):
        model = DomainAggregate.from_dict(_legacy_document()).projects["p1"].data_models["d1"]
        total, lines, note = model.attributes
        assert total.constraints == [Constraint("min", 0)]
        assert lines.element.name == "line"
        assert note.element is None
        assert total.local_id == "a1"

    def test_entry_points_need_a_type(self):
        project = DomainAggregate.from_dict(_legacy_document()).projects["p1"]
        assert list(project.entry_points) == ["e1"]
        assert project.entry_points["e1"].request_model_ids == ["d1"]
        assert project.components["c1"].entry_point_ids == ["e1"]

    def test_round_trip_is_stable(self):
        once = DomainAggregate.from_dict(_legacy_document()).to_dict()
        assert DomainAggregate.from_dict(once).to_dict() == once

    def test_garbage_input(self):
        assert DomainAggregate.from_dict(None).projects == {}
        assert DomainAggregate.from_dict({"projects": ["nope"]}).projects == {}


class TestAuthoringPath:
    def test_attribute_keeps_invalid_fields(self):
        attribute = Attribute.from_dict({
            "name": "",
            "type": "string",
            "constraints": [{"kind": "min", "value": 1}],
            "element": {"name": "x", "type": "string"},
        })
        assert attribute.id is None
        assert attribute.local_id
        assert attribute.constraints == [Constraint("min", 1)]
        assert attribute.element is not None

    def test_flow_keeps_unnamed_steps(self):
        flow = Flow.from_dict({"name": "F", "steps": [{"name": ""}, {"name": "b"}]})
        assert len(flow.steps) == 2
        assert flow.id is None

    def test_step_component_endpoint(self):
        step = Step.from_dict({"name": "s", "source": {"componentId": "c1", "entryPointId": "e1"},
                               "target": {"entry_point_id": "e1"}})
        assert step.source.component_id == "c1"
        assert step.source.entry_point_id == "e1"
        assert step.target is None


class TestConstraintHelpers:
    def test_enum_values(self):
        assert parse_enum_values("a,b\nc, a") == ["a", "b", "c"]
        assert parse_enum_values(["x", " ", "x"]) == ["x"]

    def test_coerce(self):
        assert coerce_constraint("maxLength", "12") == Constraint("maxLength", 12)
        assert coerce_constraint("maxLength", 2.5) is None
        assert coerce_constraint("enum", values=["a", "a"]) == Constraint("enum", values=["a"])
        assert coerce_constraint("pattern", "x") is None

    def test_enum_serialises_values(self):
        assert Constraint("enum", values=["a"]).to_dict() == {"kind": "enum", "values": ["a"]}
        assert Constraint("min", 1).to_dict() == {"kind": "min", "value": 1}
