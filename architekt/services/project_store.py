"""
Project aggregate store — the single entry point for every mutation.

Every mutating method follows the same protocol:

    load(owner) → deep copy → one structural change → validate → save(owner)

The loaded aggregate is never mutated in place; a validation failure raises
before ``save`` and the copy is discarded. Mutations for one owner are
serialised by an in-process lock. There is no version check, so two
processes writing the same owner still race and the later save wins.

Entity rules are delegated:
    Systems      → services.system_tree
    Flows        → services.flow_validator
    Attributes   → services.attribute_tree + services.constraint_engine
"""

from __future__ import annotations

import copy
import logging
import threading
import weakref
from collections.abc import Callable
from dataclasses import replace
from typing import TypeVar

from architekt.core.exceptions import NotFoundError, ValidationError
from architekt.models.architecture import (
    Attribute,
    AttributeType,
    Component,
    Constraint,
    DataModel,
    DomainAggregate,
    EntryPoint,
    Flow,
    Project,
    System,
    attribute_list_from_dicts,
)
from architekt.services import attribute_tree, flow_validator, system_tree
from architekt.services.constraint_engine import change_attribute_type
from architekt.services.persistence import PersistenceAdapter
from architekt.utils.helpers import ensure_bool, ensure_string, ensure_string_list, new_id, pick

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Entry point catalog ──────────────────────────────────────────────────────
# Allowed protocols / methods per entry point type. An empty list means the
# type places no restriction on that field.
ENTRY_POINT_TYPES: dict[str, dict[str, list[str]]] = {
    "http": {
        "protocols": ["HTTP", "http/2", "HTTPS", "gRPC", "GraphQL", "WebSocket"],
        "methods": ["get", "post", "put", "patch", "delete", "options", "head", "connect", "trace"],
    },
    "webhook": {"protocols": ["HTTP", "HTTPS"], "methods": ["post", "put", "patch"]},
    "queue": {"protocols": ["AMQP", "Kafka", "MQTT"], "methods": ["publish", "subscribe", "listen"]},
    "event": {"protocols": ["HTTP", "HTTPS", "WebSocket", "GraphQL"], "methods": ["subscribe", "trigger"]},
    "stream": {"protocols": ["Kafka", "MQTT", "WebSocket"], "methods": ["listen", "subscribe"]},
    "cron": {"protocols": [], "methods": ["schedule", "trigger"]},
    "firebase-function": {"protocols": [], "methods": []},
}


# ── Lookups ──────────────────────────────────────────────────────────────────

def _get_project(aggregate: DomainAggregate, project_id: str) -> Project:
    project = aggregate.projects.get(project_id)
    if project is None:
        raise NotFoundError("Project", project_id)
    return project


def _get_flow(project: Project, flow_id: str) -> Flow:
    flow = project.flows.get(flow_id)
    if flow is None:
        raise NotFoundError("Flow", flow_id, scope=project.id)
    return flow


def _get_data_model(project: Project, data_model_id: str) -> DataModel:
    data_model = project.data_models.get(data_model_id)
    if data_model is None:
        raise NotFoundError("DataModel", data_model_id, scope=project.id)
    return data_model


def _get_component(project: Project, component_id: str) -> Component:
    component = project.components.get(component_id)
    if component is None:
        raise NotFoundError("Component", component_id, scope=project.id)
    return component


def _get_entry_point(project: Project, component: Component, entry_point_id: str) -> EntryPoint:
    entry_point = project.entry_points.get(entry_point_id)
    if entry_point is None or entry_point_id not in component.entry_point_ids:
        raise NotFoundError("EntryPoint", entry_point_id, scope=project.id)
    return entry_point


def _entry_points_of(project: Project, component: Component) -> list[EntryPoint]:
    return [project.entry_points[eid] for eid in component.entry_point_ids if eid in project.entry_points]


# ── Field checks (fail-fast) ─────────────────────────────────────────────────

def _required_name(data: dict, label: str) -> str:
    name = ensure_string(data.get("name"))
    if not name:
        raise ValidationError(f"{label} name is required", details={"name": "required"})
    return name


def _updated_name(data: dict, current: str, label: str) -> str:
    if "name" not in data:
        return current
    name = ensure_string(data.get("name"))
    if not name:
        raise ValidationError(f"{label} name cannot be empty", details={"name": "required"})
    return name


def _apply_common(entity, data: dict) -> None:
    """Update description/tags when the payload carries them."""
    if "description" in data:
        entity.description = ensure_string(data.get("description"))
    if "tags" in data and hasattr(entity, "tags"):
        entity.tags = ensure_string_list(data.get("tags"))


def _raise_attribute_errors(errors: list[str], message: str) -> None:
    if errors:
        raise ValidationError(message, details={"attributes": errors})


class ProjectAggregateStore:
    """Load/clone/mutate/validate/save orchestration over a persistence adapter.

    Args:
        persistence: Storage driver exposing ``load(owner)`` / ``save(owner, aggregate)``.
        allow_alternate_cycles: When False, a Flow save that closes a cycle
            of length two or more in the alternate-flow relation is refused.
    """

    def __init__(self, persistence: PersistenceAdapter, *, allow_alternate_cycles: bool = False):
        self.persistence = persistence
        self.allow_alternate_cycles = allow_alternate_cycles
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    # ── Protocol ─────────────────────────────────────────────────────────

    def _lock_for(self, owner_id: str) -> threading.Lock:
        # Entries vanish once no caller holds the lock.
        with self._locks_guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = self._locks[owner_id] = threading.Lock()
            return lock

    def _load(self, owner_id: str) -> DomainAggregate:
        return self.persistence.load(owner_id)

    def _mutate(self, owner_id: str, change: Callable[[DomainAggregate], T]) -> T:
        with self._lock_for(owner_id):
            loaded = self._load(owner_id)
            aggregate = copy.deepcopy(loaded)
            result = change(aggregate)
            self.persistence.save(owner_id, aggregate)
        return result

    def _read_project(self, owner_id: str, project_id: str) -> Project:
        return _get_project(self._load(owner_id), project_id)

    # ═════════════════════════════════════════════════════════════════════
    # Projects
    # ═════════════════════════════════════════════════════════════════════

    def list_projects(self, owner_id: str) -> list[Project]:
        return list(self._load(owner_id).projects.values())

    def get_project(self, owner_id: str, project_id: str) -> Project:
        return self._read_project(owner_id, project_id)

    def create_project(self, owner_id: str, data: dict) -> Project:
        name = _required_name(data, "Project")

        def change(aggregate: DomainAggregate) -> Project:
            project_id, root_id = new_id(), new_id()
            project = Project(
                id=project_id,
                name=name,
                description=ensure_string(data.get("description")),
                tags=ensure_string_list(data.get("tags")),
                shared_with=ensure_string_list(pick(data, "shared_with", "sharedWith")),
                root_system_id=root_id,
                systems={root_id: System(id=root_id, name=name, is_root=True)},
            )
            aggregate.projects[project_id] = project
            return project

        project = self._mutate(owner_id, change)
        logger.info("Project created id=%s owner=%s", project.id, owner_id)
        return project

    def update_project(self, owner_id: str, project_id: str, data: dict) -> Project:
        def change(aggregate: DomainAggregate) -> Project:
            project = _get_project(aggregate, project_id)
            project.name = _updated_name(data, project.name, "Project")
            _apply_common(project, data)
            if "shared_with" in data:
                project.shared_with = ensure_string_list(data.get("shared_with"))
            return project

        project = self._mutate(owner_id, change)
        logger.info("Project updated id=%s owner=%s", project_id, owner_id)
        return project

    def delete_project(self, owner_id: str, project_id: str) -> None:
        def change(aggregate: DomainAggregate) -> None:
            _get_project(aggregate, project_id)
            del aggregate.projects[project_id]

        self._mutate(owner_id, change)
        logger.info("Project deleted id=%s owner=%s", project_id, owner_id)

    # ═════════════════════════════════════════════════════════════════════
    # Systems
    # ═════════════════════════════════════════════════════════════════════

    def list_systems(self, owner_id: str, project_id: str) -> list[System]:
        return list(self._read_project(owner_id, project_id).systems.values())

    def get_system(self, owner_id: str, project_id: str, system_id: str) -> System:
        return system_tree.get_system(self._read_project(owner_id, project_id), system_id)

    def create_system(self, owner_id: str, project_id: str, data: dict) -> System:
        name = _required_name(data, "System")

        def change(aggregate: DomainAggregate) -> System:
            project = _get_project(aggregate, project_id)
            parent_id = ensure_string(pick(data, "parent_id", "parentId"), project.root_system_id)
            system = System(
                id=new_id(),
                name=name,
                description=ensure_string(data.get("description")),
                tags=ensure_string_list(data.get("tags")),
            )
            return system_tree.add(project, parent_id, system)

        system = self._mutate(owner_id, change)
        logger.info("System created id=%s project=%s", system.id, project_id)
        return system

    def update_system(self, owner_id: str, project_id: str, system_id: str, data: dict) -> System:
        def change(aggregate: DomainAggregate) -> System:
            project = _get_project(aggregate, project_id)
            system = system_tree.get_system(project, system_id)
            system.name = _updated_name(data, system.name, "System")
            _apply_common(system, data)
            return system

        system = self._mutate(owner_id, change)
        logger.info("System updated id=%s project=%s", system_id, project_id)
        return system

    def delete_system(self, owner_id: str, project_id: str, system_id: str) -> list[str]:
        """Cascading delete; returns every removed System id."""
        def change(aggregate: DomainAggregate) -> list[str]:
            return system_tree.remove(_get_project(aggregate, project_id), system_id)

        removed = self._mutate(owner_id, change)
        logger.info("System deleted id=%s project=%s cascade=%d", system_id, project_id, len(removed))
        return removed

    # ═════════════════════════════════════════════════════════════════════
    # Flows
    # ═════════════════════════════════════════════════════════════════════

    def list_flows(
        self,
        owner_id: str,
        project_id: str,
        scope: list[str] | None = None,
        tags: list[str] | None = None,
    ) -> list[Flow]:
        """Flows whose scope holds every id in ``scope`` and whose tags hold every tag in ``tags``."""
        flows = self._read_project(owner_id, project_id).flows.values()
        return [
            flow for flow in flows
            if all(sid in flow.system_scope_ids for sid in scope or [])
            and all(tag in flow.tags for tag in tags or [])
        ]

    def get_flow(self, owner_id: str, project_id: str, flow_id: str) -> Flow:
        return _get_flow(self._read_project(owner_id, project_id), flow_id)

    @staticmethod
    def _draft_flow(data: dict, flow_id: str | None, existing: Flow | None) -> Flow:
        for keys, label in (("steps",), "Flow steps"), (("system_scope_ids", "systemScopeIds"), "Flow system scope"):
            if any(key in data and not isinstance(data[key], list) for key in keys):
                raise ValidationError(f"{label} must be an array")
        base = existing.to_dict() if existing else {}
        draft = Flow.from_dict({**base, **data})
        draft.id = flow_id
        return draft

    def validate_flow(
        self,
        owner_id: str,
        project_id: str,
        data: dict,
        flow_id: str | None = None,
    ) -> dict:
        """Dry run of the Flow checks; nothing is saved."""
        project = self._read_project(owner_id, project_id)
        existing = _get_flow(project, flow_id) if flow_id else None
        draft = self._draft_flow(data, flow_id, existing)
        return flow_validator.validate(draft, project).to_dict()

    def _store_flow(self, project: Project, draft: Flow, existing: Flow | None) -> Flow:
        result = flow_validator.validate(draft, project)
        if not result.is_valid:
            raise ValidationError("Flow validation failed", details=result.to_dict())

        reusable = {step.id for step in existing.steps} if existing else set()
        used: set[str] = set()
        for step in draft.steps:
            if not step.id or step.id not in reusable or step.id in used:
                step.id = new_id()
            used.add(step.id)

        project.flows[draft.id] = draft
        if not self.allow_alternate_cycles:
            cycle = flow_validator.find_alternate_cycle(project.flows, through=draft.id)
            if cycle:
                raise ValidationError(
                    "Alternate flows would form a cycle: " + " -> ".join(cycle),
                    details={"cycle": cycle},
                )
        return draft

    def create_flow(self, owner_id: str, project_id: str, data: dict) -> Flow:
        def change(aggregate: DomainAggregate) -> Flow:
            project = _get_project(aggregate, project_id)
            draft = self._draft_flow(data, new_id(), None)
            return self._store_flow(project, draft, None)

        flow = self._mutate(owner_id, change)
        logger.info("Flow created id=%s project=%s steps=%d", flow.id, project_id, len(flow.steps))
        return flow

    def update_flow(self, owner_id: str, project_id: str, flow_id: str, data: dict) -> Flow:
        """Replace the Flow document; keys missing from ``data`` keep their stored value."""
        def change(aggregate: DomainAggregate) -> Flow:
            project = _get_project(aggregate, project_id)
            existing = _get_flow(project, flow_id)
            draft = self._draft_flow(data, flow_id, existing)
            return self._store_flow(project, draft, existing)

        flow = self._mutate(owner_id, change)
        logger.info("Flow updated id=%s project=%s steps=%d", flow_id, project_id, len(flow.steps))
        return flow

    def delete_flow(self, owner_id: str, project_id: str, flow_id: str) -> None:
        """Delete the Flow and unlink it from every step that used it as an alternate."""
        def change(aggregate: DomainAggregate) -> None:
            project = _get_project(aggregate, project_id)
            _get_flow(project, flow_id)
            del project.flows[flow_id]
            for other in project.flows.values():
                for step in other.steps:
                    step.alternate_flow_ids = [fid for fid in step.alternate_flow_ids if fid != flow_id]

        self._mutate(owner_id, change)
        logger.info("Flow deleted id=%s project=%s", flow_id, project_id)

    # ═════════════════════════════════════════════════════════════════════
    # Data models
    # ═════════════════════════════════════════════════════════════════════

    def list_data_models(self, owner_id: str, project_id: str) -> list[DataModel]:
        return list(self._read_project(owner_id, project_id).data_models.values())

    def get_data_model(self, owner_id: str, project_id: str, data_model_id: str) -> DataModel:
        return _get_data_model(self._read_project(owner_id, project_id), data_model_id)

    @staticmethod
    def _persist_attributes(tree: list[Attribute], known: set[str], message: str) -> list[Attribute]:
        _raise_attribute_errors(attribute_tree.validate(tree), message)
        return attribute_tree.assign_ids(tree, known)

    def create_data_model(self, owner_id: str, project_id: str, data: dict) -> DataModel:
        name = _required_name(data, "Data model")

        def change(aggregate: DomainAggregate) -> DataModel:
            project = _get_project(aggregate, project_id)
            attributes = self._persist_attributes(
                attribute_list_from_dicts(data.get("attributes")), set(), "Data model attributes are invalid"
            )
            data_model = DataModel(
                id=new_id(),
                name=name,
                description=ensure_string(data.get("description")),
                attributes=attributes,
            )
            project.data_models[data_model.id] = data_model
            return data_model

        data_model = self._mutate(owner_id, change)
        logger.info("DataModel created id=%s project=%s", data_model.id, project_id)
        return data_model

    def update_data_model(self, owner_id: str, project_id: str, data_model_id: str, data: dict) -> DataModel:
        def change(aggregate: DomainAggregate) -> DataModel:
            project = _get_project(aggregate, project_id)
            data_model = _get_data_model(project, data_model_id)
            data_model.name = _updated_name(data, data_model.name, "Data model")
            _apply_common(data_model, data)
            if "attributes" in data:
                data_model.attributes = self._persist_attributes(
                    attribute_list_from_dicts(data.get("attributes")),
                    attribute_tree.persisted_ids(data_model.attributes),
                    "Data model attributes are invalid",
                )
            return data_model

        data_model = self._mutate(owner_id, change)
        logger.info("DataModel updated id=%s project=%s", data_model_id, project_id)
        return data_model

    def delete_data_model(self, owner_id: str, project_id: str, data_model_id: str) -> None:
        """Delete the model and drop it from every entry point's request/response ids."""
        def change(aggregate: DomainAggregate) -> None:
            project = _get_project(aggregate, project_id)
            _get_data_model(project, data_model_id)
            del project.data_models[data_model_id]
            for entry_point in project.entry_points.values():
                entry_point.request_model_ids = [m for m in entry_point.request_model_ids if m != data_model_id]
                entry_point.response_model_ids = [m for m in entry_point.response_model_ids if m != data_model_id]

        self._mutate(owner_id, change)
        logger.info("DataModel deleted id=%s project=%s", data_model_id, project_id)

    # ── Attribute authoring on a stored data model ───────────────────────

    def _edit_attributes(
        self,
        owner_id: str,
        project_id: str,
        data_model_id: str,
        edit: Callable[[list[Attribute]], list[Attribute]],
    ) -> DataModel:
        def change(aggregate: DomainAggregate) -> DataModel:
            project = _get_project(aggregate, project_id)
            data_model = _get_data_model(project, data_model_id)
            known = attribute_tree.persisted_ids(data_model.attributes)
            data_model.attributes = self._persist_attributes(
                edit(data_model.attributes), known, "Data model attributes are invalid"
            )
            return data_model

        return self._mutate(owner_id, change)

    def add_attribute(
        self,
        owner_id: str,
        project_id: str,
        data_model_id: str,
        parent_local_id: str | None,
        data: dict,
    ) -> DataModel:
        attribute = Attribute.from_dict({**data, "id": None, "local_id": new_id()})
        data_model = self._edit_attributes(
            owner_id, project_id, data_model_id,
            lambda tree: attribute_tree.add(tree, parent_local_id, attribute),
        )
        logger.info("Attribute added data_model=%s parent=%s", data_model_id, parent_local_id)
        return data_model

    def update_attribute(
        self,
        owner_id: str,
        project_id: str,
        data_model_id: str,
        local_id: str,
        data: dict,
    ) -> DataModel:
        data_model = self._edit_attributes(
            owner_id, project_id, data_model_id,
            lambda tree: attribute_tree.update(tree, local_id, lambda node: apply_attribute_changes(node, data)),
        )
        logger.info("Attribute updated data_model=%s attribute=%s", data_model_id, local_id)
        return data_model

    def remove_attribute(self, owner_id: str, project_id: str, data_model_id: str, local_id: str) -> DataModel:
        def edit(tree: list[Attribute]) -> list[Attribute]:
            if attribute_tree.find(tree, local_id) is None:
                raise NotFoundError("Attribute", local_id, scope=project_id)
            return attribute_tree.remove(tree, local_id)

        data_model = self._edit_attributes(owner_id, project_id, data_model_id, edit)
        logger.info("Attribute removed data_model=%s attribute=%s", data_model_id, local_id)
        return data_model

    # ═════════════════════════════════════════════════════════════════════
    # Components & entry points
    # ═════════════════════════════════════════════════════════════════════

    def list_components(self, owner_id: str, project_id: str) -> list[tuple[Component, list[EntryPoint]]]:
        project = self._read_project(owner_id, project_id)
        return [(c, _entry_points_of(project, c)) for c in project.components.values()]

    def get_component(self, owner_id: str, project_id: str, component_id: str) -> tuple[Component, list[EntryPoint]]:
        project = self._read_project(owner_id, project_id)
        component = _get_component(project, component_id)
        return component, _entry_points_of(project, component)

    @staticmethod
    def _build_entry_point(project: Project, data: dict, entry_point_id: str, existing: EntryPoint | None) -> EntryPoint:
        base = existing.to_dict() if existing else {}
        entry_point = EntryPoint.from_dict({**base, **data, "id": entry_point_id})
        errors = validate_entry_point(entry_point, project)
        if errors:
            raise ValidationError(
                f"Entry point '{entry_point.name or entry_point_id}' is invalid",
                details={"entry_point_id": entry_point_id, "errors": errors},
            )
        request_known = attribute_tree.persisted_ids(existing.request_attributes) if existing else set()
        response_known = attribute_tree.persisted_ids(existing.response_attributes) if existing else set()
        entry_point.request_attributes = attribute_tree.assign_ids(entry_point.request_attributes, request_known)
        entry_point.response_attributes = attribute_tree.assign_ids(entry_point.response_attributes, response_known)
        return entry_point

    def _reconcile_entry_points(self, project: Project, component: Component, raw_list) -> None:
        """Make ``component``'s entry points match ``raw_list`` exactly."""
        if not isinstance(raw_list, list):
            raise ValidationError("entry_points must be a list")
        owned = set(component.entry_point_ids)
        kept: list[str] = []
        for raw in raw_list:
            raw = raw if isinstance(raw, dict) else {}
            given_id = ensure_string(raw.get("id"))
            if given_id in owned and given_id not in kept:
                entry_point = self._build_entry_point(project, raw, given_id, project.entry_points.get(given_id))
            else:
                entry_point = self._build_entry_point(project, raw, new_id(), None)
            project.entry_points[entry_point.id] = entry_point
            kept.append(entry_point.id)
        for dropped in owned - set(kept):
            project.entry_points.pop(dropped, None)
        component.entry_point_ids = kept

    def create_component(self, owner_id: str, project_id: str, data: dict) -> tuple[Component, list[EntryPoint]]:
        name = _required_name(data, "Component")

        def change(aggregate: DomainAggregate) -> tuple[Component, list[EntryPoint]]:
            project = _get_project(aggregate, project_id)
            component = Component(id=new_id(), name=name, description=ensure_string(data.get("description")))
            self._reconcile_entry_points(project, component, pick(data, "entry_points", "entryPoints", default=[]))
            project.components[component.id] = component
            return component, _entry_points_of(project, component)

        component, entry_points = self._mutate(owner_id, change)
        logger.info("Component created id=%s project=%s entry_points=%d", component.id, project_id, len(entry_points))
        return component, entry_points

    def update_component(
        self, owner_id: str, project_id: str, component_id: str, data: dict
    ) -> tuple[Component, list[EntryPoint]]:
        def change(aggregate: DomainAggregate) -> tuple[Component, list[EntryPoint]]:
            project = _get_project(aggregate, project_id)
            component = _get_component(project, component_id)
            component.name = _updated_name(data, component.name, "Component")
            _apply_common(component, data)
            raw_entry_points = pick(data, "entry_points", "entryPoints")
            if raw_entry_points is not None:
                self._reconcile_entry_points(project, component, raw_entry_points)
            return component, _entry_points_of(project, component)

        result = self._mutate(owner_id, change)
        logger.info("Component updated id=%s project=%s", component_id, project_id)
        return result

    def delete_component(self, owner_id: str, project_id: str, component_id: str) -> None:
        """Delete the component together with the entry points it owns."""
        def change(aggregate: DomainAggregate) -> None:
            project = _get_project(aggregate, project_id)
            component = _get_component(project, component_id)
            for entry_point_id in component.entry_point_ids:
                project.entry_points.pop(entry_point_id, None)
            del project.components[component_id]

        self._mutate(owner_id, change)
        logger.info("Component deleted id=%s project=%s", component_id, project_id)

    def list_entry_points(self, owner_id: str, project_id: str, component_id: str) -> list[EntryPoint]:
        project = self._read_project(owner_id, project_id)
        return _entry_points_of(project, _get_component(project, component_id))

    def get_entry_point(self, owner_id: str, project_id: str, component_id: str, entry_point_id: str) -> EntryPoint:
        project = self._read_project(owner_id, project_id)
        return _get_entry_point(project, _get_component(project, component_id), entry_point_id)

    def create_entry_point(self, owner_id: str, project_id: str, component_id: str, data: dict) -> EntryPoint:
        def change(aggregate: DomainAggregate) -> EntryPoint:
            project = _get_project(aggregate, project_id)
            component = _get_component(project, component_id)
            entry_point = self._build_entry_point(project, data, new_id(), None)
            project.entry_points[entry_point.id] = entry_point
            component.entry_point_ids.append(entry_point.id)
            return entry_point

        entry_point = self._mutate(owner_id, change)
        logger.info("EntryPoint created id=%s component=%s", entry_point.id, component_id)
        return entry_point

    def update_entry_point(
        self, owner_id: str, project_id: str, component_id: str, entry_point_id: str, data: dict
    ) -> EntryPoint:
        def change(aggregate: DomainAggregate) -> EntryPoint:
            project = _get_project(aggregate, project_id)
            component = _get_component(project, component_id)
            existing = _get_entry_point(project, component, entry_point_id)
            entry_point = self._build_entry_point(project, data, entry_point_id, existing)
            project.entry_points[entry_point_id] = entry_point
            return entry_point

        entry_point = self._mutate(owner_id, change)
        logger.info("EntryPoint updated id=%s component=%s", entry_point_id, component_id)
        return entry_point

    def delete_entry_point(self, owner_id: str, project_id: str, component_id: str, entry_point_id: str) -> None:
        def change(aggregate: DomainAggregate) -> None:
            project = _get_project(aggregate, project_id)
            component = _get_component(project, component_id)
            _get_entry_point(project, component, entry_point_id)
            component.entry_point_ids = [eid for eid in component.entry_point_ids if eid != entry_point_id]
            del project.entry_points[entry_point_id]

        self._mutate(owner_id, change)
        logger.info("EntryPoint deleted id=%s component=%s", entry_point_id, component_id)


# ═════════════════════════════════════════════════════════════════════════════
# Pure helpers shared with callers
# ═════════════════════════════════════════════════════════════════════════════

_FLAG_FIELDS = (
    ("required", "required"),
    ("unique", "unique"),
    ("read_only", "readOnly"),
    ("encrypted", "encrypted"),
    ("private", "private"),
)


def apply_attribute_changes(attribute: Attribute, data: dict) -> Attribute:
    """Apply an authoring payload to one attribute node.

    A type change goes through ``change_attribute_type`` first, so stale
    constraints, children and element are dropped before any constraints
    from the same payload are applied.
    """
    if "type" in data:
        attribute = change_attribute_type(attribute, ensure_string(data.get("type")))

    changes = {}
    if "name" in data:
        changes["name"] = ensure_string(data.get("name"))
    if "description" in data:
        changes["description"] = ensure_string(data.get("description"))
    for field_name, legacy in _FLAG_FIELDS:
        value = pick(data, field_name, legacy)
        if value is not None:
            changes[field_name] = ensure_bool(value)
    if "constraints" in data:
        changes["constraints"] = [
            Constraint.from_dict(raw) for raw in data.get("constraints") or [] if isinstance(raw, dict)
        ]
    if "element" in data:
        element_raw = data.get("element")
        if isinstance(element_raw, dict) and attribute.type == AttributeType.ARRAY.value:
            changes["element"] = Attribute.from_dict(element_raw)
        else:
            changes["element"] = None
    return replace(attribute, **changes) if changes else attribute


def validate_entry_point(entry_point: EntryPoint, project: Project) -> list[str]:
    """Collect every problem with an entry point; empty list when valid."""
    errors = []
    if not entry_point.name:
        errors.append("Entry point name is required.")
    if not entry_point.type:
        errors.append("Entry point type is required.")

    catalog = ENTRY_POINT_TYPES.get(entry_point.type)
    if catalog:
        if entry_point.protocol and catalog["protocols"] and entry_point.protocol not in catalog["protocols"]:
            errors.append(f"Protocol '{entry_point.protocol}' is not allowed for type '{entry_point.type}'.")
        if entry_point.method and catalog["methods"] and entry_point.method not in catalog["methods"]:
            errors.append(f"Method '{entry_point.method}' is not allowed for type '{entry_point.type}'.")

    for label, model_ids in (("Request", entry_point.request_model_ids), ("Response", entry_point.response_model_ids)):
        missing = [mid for mid in model_ids if mid not in project.data_models]
        if missing:
            errors.append(f"{label} data models do not exist: {', '.join(missing)}.")

    errors += attribute_tree.validate(entry_point.request_attributes, prefix="request")
    errors += attribute_tree.validate(entry_point.response_attributes, prefix="response")
    return errors
