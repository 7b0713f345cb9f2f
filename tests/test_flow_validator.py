"""
tests/test_flow_validator.py — Flow draft validation and alternate-flow cycles.

Covers:
    1. Flow name and scope rules (empty scope, stale scope)
    2. Step names: required, case-insensitive uniqueness flagged on both steps
    3. Source/target membership in the filtered scope
    4. Alternate flows: must exist, no direct self-reference
    5. Component endpoints on steps
    6. Cycle detection over the alternate relation
"""

from architekt.models.architecture import Component, Flow, Project, Step, StepEndpoint, System
from architekt.services import flow_validator as fv


def _project(flows=None):
    systems = {
        "sysA": System(id="sysA", name="A", is_root=True, child_ids=["sysB"]),
        "sysB": System(id="sysB", name="B"),
        "sysC": System(id="sysC", name="C"),
    }
    components = {"api": Component(id="api", name="Orders API", entry_point_ids=["ep1"])}
    return Project(
        id="p1", name="P", root_system_id="sysA", systems=systems,
        flows=flows or {}, components=components,
    )


def _step(name="s1", source="sysA", target="sysB", **kw):
    return Step(name=name, source_system_id=source, target_system_id=target, **kw)


def _flow(steps=None, scope=("sysA", "sysB"), flow_id="f1", name="Checkout"):
    return Flow(id=flow_id, name=name, system_scope_ids=list(scope), steps=steps or [])


class TestFlowLevel:
    def test_valid_flow(self):
        result = fv.validate(_flow([_step()]), _project())
        assert result.is_valid
        assert result.to_dict() == {"flow_errors": [], "step_errors": {}, "is_valid": True}

    def test_name_required(self):
        result = fv.validate(_flow(name="   "), _project())
        assert fv.FLOW_NAME_REQUIRED in result.flow_errors
        assert not result.is_valid

    def test_empty_scope(self):
        result = fv.validate(_flow(scope=()), _project())
        assert result.flow_errors == [fv.SCOPE_EMPTY]

    def test_all_stale_scope_reports_both(self):
        result = fv.validate(_flow(scope=("gone",)), _project())
        assert result.flow_errors == [fv.SCOPE_EMPTY, fv.SCOPE_STALE]

    def test_partially_stale_scope(self):
        result = fv.validate(_flow([_step()], scope=("sysA", "sysB", "gone")), _project())
        assert result.flow_errors == [fv.SCOPE_STALE]


class TestSteps:
    def test_step_name_required(self):
        result = fv.validate(_flow([_step(name=" ")]), _project())
        assert result.step_errors == {0: [fv.STEP_NAME_REQUIRED]}

    def test_duplicate_names_flag_both_steps(self):
        steps = [_step("Pay"), _step("other"), _step(" pay ")]
        result = fv.validate(_flow(steps), _project())
        assert fv.STEP_NAME_DUPLICATE in result.step_errors[0]
        assert fv.STEP_NAME_DUPLICATE in result.step_errors[2]
        assert 1 not in result.step_errors

    def test_source_and_target_required(self):
        result = fv.validate(_flow([_step(source="", target="")]), _project())
        assert result.step_errors[0] == [fv.SOURCE_REQUIRED, fv.TARGET_REQUIRED]

    def test_systems_outside_scope(self):
        result = fv.validate(_flow([_step(source="sysC", target="sysC")]), _project())
        assert result.step_errors[0] == [fv.SOURCE_OUT_OF_SCOPE, fv.TARGET_OUT_OF_SCOPE]

    def test_stale_scope_member_is_not_in_scope(self):
        project = _project()
        del project.systems["sysB"]
        result = fv.validate(_flow([_step()]), project)
        assert fv.TARGET_OUT_OF_SCOPE in result.step_errors[0]


class TestAlternates:
    def test_self_reference_scenario(self):
        flow = Flow(
            id="f1", name="F1", system_scope_ids=["sysA"],
            steps=[Step(name="s1", source_system_id="sysA", target_system_id="sysA", alternate_flow_ids=["f1"])],
        )
        result = fv.validate(flow, _project())
        assert not result.is_valid
        assert fv.ALTERNATE_SELF in result.step_errors[0]

    def test_unsaved_flow_counts_as_existing(self):
        flow = _flow([_step(alternate_flow_ids=["new-id"])], flow_id="new-id")
        result = fv.validate(flow, _project())
        assert fv.ALTERNATE_MISSING not in result.step_errors.get(0, [])

    def test_missing_alternate(self):
        result = fv.validate(_flow([_step(alternate_flow_ids=["nope"])]), _project())
        assert result.step_errors[0] == [fv.ALTERNATE_MISSING]

    def test_existing_alternate_ok(self):
        project = _project({"f2": _flow(flow_id="f2", name="Fallback")})
        result = fv.validate(_flow([_step(alternate_flow_ids=["f2"])]), project)
        assert result.is_valid


class TestComponentEndpoints:
    def test_component_endpoints_accepted(self):
        step = Step(name="call", source=StepEndpoint("api", "ep1"), target=StepEndpoint("api"))
        assert fv.validate(_flow([step]), _project()).is_valid

    def test_missing_component(self):
        step = Step(name="call", source=StepEndpoint("ghost"), target_system_id="sysA")
        result = fv.validate(_flow([step]), _project())
        assert result.step_errors[0] == ["Source component must exist within the project."]

    def test_foreign_entry_point(self):
        step = Step(name="call", source_system_id="sysA", target=StepEndpoint("api", "ep-other"))
        result = fv.validate(_flow([step]), _project())
        assert result.step_errors[0] == ["Target entry point must belong to the target component."]


class TestAlternateCycles:
    @staticmethod
    def _flows(edges):
        return {
            fid: _flow([_step(f"s-{fid}", alternate_flow_ids=targets)], flow_id=fid, name=fid)
            for fid, targets in edges.items()
        }

    def test_acyclic(self):
        flows = self._flows({"a": ["b"], "b": ["c"], "c": [], "d": ["b"]})
        assert fv.find_alternate_cycle(flows) is None

    def test_two_cycle(self):
        cycle = fv.find_alternate_cycle(self._flows({"a": ["b"], "b": ["a"]}))
        assert cycle == ["a", "b", "a"]

    def test_long_cycle(self):
        cycle = fv.find_alternate_cycle(self._flows({"a": ["b"], "b": ["c"], "c": ["d"], "d": ["b"]}))
        assert cycle == ["b", "c", "d", "b"]

    def test_dangling_alternate_ignored(self):
        assert fv.find_alternate_cycle(self._flows({"a": ["gone"]})) is None

    def test_edges_deduplicated(self):
        flows = self._flows({"a": ["b", "b"], "b": []})
        assert fv.alternate_edges(flows) == {"a": ["b"], "b": []}

    def test_through_ignores_cycles_elsewhere(self):
        flows = self._flows({"a": ["b"], "b": ["a"], "c": ["a"]})
        assert fv.find_alternate_cycle(flows, through="c") is None

    def test_through_reports_cycle_from_that_flow(self):
        flows = self._flows({"a": ["b"], "b": ["c"], "c": ["b", "a"]})
        assert fv.find_alternate_cycle(flows, through="a") == ["a", "b", "c", "a"]
