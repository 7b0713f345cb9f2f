"""
Flow draft validation against a Project.

``validate`` is advisory: it never mutates anything and collects every error
instead of stopping at the first. Callers must refuse to persist a draft
whose result has ``is_valid == False``.

Rules, in order:
  1. Flow name is required.
  2. Scope ids are filtered to Systems that still exist; an empty filtered
     scope and a stale scope are both flow-level errors.
  3. Per step: name required and unique (trimmed, case-insensitive; both
     offending steps are flagged), source/target set and inside the scope
     (or, for component endpoints, pointing at an existing component and one
     of its entry points), alternate flows exist, no direct self-reference.
  4. Valid when there are no flow errors and no step errors.

``find_alternate_cycle`` covers what rule 3 does not: cycles of length two
or more across the alternate-flow relation of all Flows in a Project.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from architekt.models.architecture import Flow, Project, Step, StepEndpoint

FLOW_NAME_REQUIRED = "Flow name is required."
SCOPE_EMPTY = "Select at least one system for the flow scope."
SCOPE_STALE = "Some scoped systems are no longer available in the project."
STEP_NAME_REQUIRED = "Step name is required."
STEP_NAME_DUPLICATE = "Step name must be unique."
SOURCE_REQUIRED = "Select a source system."
TARGET_REQUIRED = "Select a target system."
SOURCE_OUT_OF_SCOPE = "Source system must be part of the flow scope."
TARGET_OUT_OF_SCOPE = "Target system must be part of the flow scope."
ALTERNATE_MISSING = "Alternate flows must exist within the project."
ALTERNATE_SELF = "A flow cannot reference itself as an alternate path."
COMPONENT_MISSING = "{role} component must exist within the project."
ENTRY_POINT_FOREIGN = "{role} entry point must belong to the {lower} component."


@dataclass
class FlowValidationResult:
    flow_errors: list[str] = field(default_factory=list)
    step_errors: dict[int, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.flow_errors and all(not errors for errors in self.step_errors.values())

    def to_dict(self) -> dict:
        return {
            "flow_errors": list(self.flow_errors),
            "step_errors": {str(index): list(errors) for index, errors in self.step_errors.items()},
            "is_valid": self.is_valid,
        }


def _check_endpoint(
    role: str,
    system_id: str,
    endpoint: StepEndpoint | None,
    scope: set[str],
    project: Project,
) -> list[str]:
    required = SOURCE_REQUIRED if role == "Source" else TARGET_REQUIRED
    out_of_scope = SOURCE_OUT_OF_SCOPE if role == "Source" else TARGET_OUT_OF_SCOPE

    if system_id:
        return [] if system_id in scope else [out_of_scope]

    if endpoint is None:
        return [required]

    component = project.components.get(endpoint.component_id)
    if component is None:
        return [COMPONENT_MISSING.format(role=role)]
    if endpoint.entry_point_id and endpoint.entry_point_id not in component.entry_point_ids:
        return [ENTRY_POINT_FOREIGN.format(role=role, lower=role.lower())]
    return []


def _check_step(
    step: Step,
    scope: set[str],
    flow_ids: set[str],
    draft_id: str | None,
    project: Project,
) -> list[str]:
    errors = []
    errors += _check_endpoint("Source", step.source_system_id, step.source, scope, project)
    errors += _check_endpoint("Target", step.target_system_id, step.target, scope, project)
    if any(flow_id not in flow_ids for flow_id in step.alternate_flow_ids):
        errors.append(ALTERNATE_MISSING)
    if draft_id and draft_id in step.alternate_flow_ids:
        errors.append(ALTERNATE_SELF)
    return errors


def validate(draft: Flow, project: Project) -> FlowValidationResult:
    result = FlowValidationResult()

    if not draft.name.strip():
        result.flow_errors.append(FLOW_NAME_REQUIRED)

    valid_scope = [sid for sid in draft.system_scope_ids if sid in project.systems]
    if not valid_scope:
        result.flow_errors.append(SCOPE_EMPTY)
    if len(valid_scope) != len(draft.system_scope_ids):
        result.flow_errors.append(SCOPE_STALE)

    scope = set(valid_scope)
    flow_ids = set(project.flows)
    if draft.id:
        flow_ids.add(draft.id)

    first_seen: dict[str, int] = {}
    for index, step in enumerate(draft.steps):
        errors = []
        name = step.name.strip()
        if not name:
            errors.append(STEP_NAME_REQUIRED)
        else:
            normalized = name.lower()
            if normalized in first_seen:
                result.step_errors.setdefault(first_seen[normalized], []).append(STEP_NAME_DUPLICATE)
                errors.append(STEP_NAME_DUPLICATE)
            else:
                first_seen[normalized] = index

        errors += _check_step(step, scope, flow_ids, draft.id, project)
        if errors:
            result.step_errors.setdefault(index, []).extend(errors)

    return result


def alternate_edges(flows: dict[str, Flow]) -> dict[str, list[str]]:
    """Directed relation flow -> alternate flows referenced by its steps."""
    edges = {}
    for flow_id, flow in flows.items():
        targets: list[str] = []
        for step in flow.steps:
            for alternate_id in step.alternate_flow_ids:
                if alternate_id in flows and alternate_id not in targets:
                    targets.append(alternate_id)
        edges[flow_id] = targets
    return edges


def find_alternate_cycle(flows: dict[str, Flow], through: str | None = None) -> list[str] | None:
    """Return one cycle as ``[a, b, ..., a]``, or None when the relation is acyclic.

    With ``through`` only cycles that pass through that Flow count, and the
    returned path starts at it. Cycles elsewhere in the Project are ignored.

    Iterative DFS with an on-stack marker so deep chains cannot hit the
    recursion limit.
    """
    edges = alternate_edges(flows)
    if through is None:
        starts = list(edges)
    else:
        starts = [through] if through in edges else []
    done: set[str] = set()
    for start in starts:
        if start in done:
            continue
        path = [start]
        on_path = {start}
        stack = [iter(edges[start])]
        while stack:
            successor = next(stack[-1], None)
            if successor is None:
                stack.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                continue
            if successor in on_path:
                if through is None or successor == through:
                    return path[path.index(successor):] + [successor]
                continue
            if successor in done:
                continue
            path.append(successor)
            on_path.add(successor)
            stack.append(iter(edges[successor]))
    return None
