"""
Project aggregate — Systems, Flows, Data Models, Components, Entry Points.

The whole aggregate for one owner is loaded and saved as a single document,
so these are plain dataclasses rather than ORM rows. Every class offers
``to_dict()`` for the JSON boundary and ``from_dict()`` for parsing.

``from_dict(raw, stored=True)`` is the lenient load path: it coerces every
field and silently drops entities that lack their identity (id/name, plus
type for attributes and entry points). ``stored=False`` is the authoring
path: nothing is dropped so validators can report every problem.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from architekt.utils.helpers import (
    ensure_bool,
    ensure_number,
    ensure_string,
    ensure_string_list,
    new_id,
    pick,
)


# ═════════════════════════════════════════════════════════════════════════════
# Enums
# ═════════════════════════════════════════════════════════════════════════════

class AttributeType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    DATE = "date"


class ConstraintKind(str, Enum):
    REGEX = "regex"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    MIN = "min"
    MAX = "max"
    ENUM = "enum"


ATTRIBUTE_TYPES = tuple(t.value for t in AttributeType)
CONSTRAINT_KINDS = tuple(k.value for k in ConstraintKind)

_ENUM_SPLIT = re.compile(r",|\n")


# ═════════════════════════════════════════════════════════════════════════════
# Constraint
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class Constraint:
    """One constraint on an attribute, discriminated by ``kind``.

    ``value`` holds the payload of regex/minLength/maxLength/min/max;
    ``values`` holds the enum members.
    """
    kind: str
    value: str | int | float | None = None
    values: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        if self.kind == ConstraintKind.ENUM.value:
            return {"kind": self.kind, "values": list(self.values)}
        return {"kind": self.kind, "value": self.value}

    @classmethod
    def from_dict(cls, raw) -> Constraint:
        """Parse without judging the value; see ``coerce_constraint``."""
        if not isinstance(raw, dict):
            return cls(kind="")
        kind = raw.get("kind") or raw.get("type") or ""
        values = raw.get("values")
        if values is None and isinstance(raw.get("value"), (list, tuple)):
            values = raw.get("value")
        return cls(
            kind=kind if isinstance(kind, str) else "",
            value=raw.get("value"),
            values=list(values) if isinstance(values, (list, tuple)) else [],
        )


def parse_enum_values(raw) -> list[str]:
    """Split a comma/newline separated string (or a list) into unique values."""
    if isinstance(raw, str):
        candidates = _ENUM_SPLIT.split(raw)
    elif isinstance(raw, (list, tuple)):
        candidates = raw
    else:
        candidates = []
    return ensure_string_list(candidates)


def coerce_constraint(kind: str, value=None, values=None) -> Constraint | None:
    """Return a normalised Constraint, or None when the value is unusable.

    regex      non-empty pattern, stored verbatim
    minLength  non-negative integer
    maxLength  non-negative integer
    min / max  any finite number
    enum       at least one non-empty value, de-duplicated
    """
    if kind == ConstraintKind.REGEX.value:
        if isinstance(value, str) and value.strip():
            return Constraint(kind=kind, value=value)
        return None

    if kind in (ConstraintKind.MIN_LENGTH.value, ConstraintKind.MAX_LENGTH.value):
        number = ensure_number(value)
        if not isinstance(number, int) or number < 0:
            return None
        return Constraint(kind=kind, value=number)

    if kind in (ConstraintKind.MIN.value, ConstraintKind.MAX.value):
        number = ensure_number(value)
        if number is None:
            return None
        return Constraint(kind=kind, value=number)

    if kind == ConstraintKind.ENUM.value:
        members = parse_enum_values(values if values else value)
        if not members:
            return None
        return Constraint(kind=kind, values=members)

    return None


def sanitize_constraints(constraints: list[Constraint]) -> list[Constraint]:
    """Drop unusable constraints and keep only the first of each kind."""
    seen = set()
    result = []
    for constraint in constraints:
        normalised = coerce_constraint(constraint.kind, constraint.value, constraint.values)
        if normalised and normalised.kind not in seen:
            seen.add(normalised.kind)
            result.append(normalised)
    return result


# ═════════════════════════════════════════════════════════════════════════════
# Attribute (recursive)
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class Attribute:
    """Recursive attribute definition used by data models and entry points.

    ``local_id`` identifies the node inside one draft; ``id`` is assigned on
    first persist, after which both are equal. ``attributes`` only has meaning
    for type ``object`` and ``element`` only for type ``array``.
    """
    local_id: str
    name: str = ""
    type: str = ""
    description: str = ""
    constraints: list[Constraint] = field(default_factory=list)
    required: bool = False
    unique: bool = False
    read_only: bool = False
    encrypted: bool = False
    private: bool = False
    attributes: list[Attribute] = field(default_factory=list)
    element: Attribute | None = None
    id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "local_id": self.local_id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "constraints": [c.to_dict() for c in self.constraints],
            "required": self.required,
            "unique": self.unique,
            "read_only": self.read_only,
            "encrypted": self.encrypted,
            "private": self.private,
            "attributes": [a.to_dict() for a in self.attributes],
            "element": self.element.to_dict() if self.element else None,
        }

    @classmethod
    def from_dict(cls, raw, stored: bool = False) -> Attribute:
        raw = raw if isinstance(raw, dict) else {}
        attr_id = ensure_string(raw.get("id")) or None
        local_id = ensure_string(pick(raw, "local_id", "localId")) or attr_id or new_id()
        attr_type = ensure_string(raw.get("type"))
        constraints = [Constraint.from_dict(c) for c in raw.get("constraints") or [] if isinstance(c, dict)]
        element_raw = raw.get("element")
        element = cls.from_dict(element_raw, stored) if isinstance(element_raw, dict) else None

        if stored:
            constraints = sanitize_constraints(constraints)
            if attr_type != AttributeType.ARRAY.value or (element and not _has_identity(element)):
                element = None

        children = attribute_list_from_dicts(raw.get("attributes"), stored)
        return cls(
            id=attr_id,
            local_id=attr_id if stored and attr_id else local_id,
            name=ensure_string(raw.get("name")),
            type=attr_type,
            description=ensure_string(raw.get("description")),
            constraints=constraints,
            required=ensure_bool(raw.get("required")),
            unique=ensure_bool(raw.get("unique")),
            read_only=ensure_bool(pick(raw, "read_only", "readOnly")),
            encrypted=ensure_bool(raw.get("encrypted")),
            private=ensure_bool(raw.get("private")),
            attributes=children,
            element=element,
        )


def _has_identity(attribute: Attribute) -> bool:
    return bool(attribute.id and attribute.name and attribute.type)


def attribute_list_from_dicts(raw, stored: bool = False) -> list[Attribute]:
    if not isinstance(raw, list):
        return []
    attributes = [Attribute.from_dict(item, stored) for item in raw if isinstance(item, dict)]
    if stored:
        attributes = [a for a in attributes if _has_identity(a)]
    return attributes


# ═════════════════════════════════════════════════════════════════════════════
# System
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class System:
    id: str
    name: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    child_ids: list[str] = field(default_factory=list)
    is_root: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "child_ids": list(self.child_ids),
            "is_root": self.is_root,
        }

    @classmethod
    def from_dict(cls, raw) -> System:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            id=ensure_string(raw.get("id")),
            name=ensure_string(raw.get("name")),
            description=ensure_string(raw.get("description")),
            tags=ensure_string_list(raw.get("tags")),
            child_ids=ensure_string_list(pick(raw, "child_ids", "childIds")),
            is_root=ensure_bool(pick(raw, "is_root", "isRoot")),
        )


# ═════════════════════════════════════════════════════════════════════════════
# Flow & Step
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class StepEndpoint:
    """Component + optional entry point reference used by newer steps."""
    component_id: str
    entry_point_id: str | None = None

    def to_dict(self) -> dict:
        return {"component_id": self.component_id, "entry_point_id": self.entry_point_id}

    @classmethod
    def from_dict(cls, raw) -> StepEndpoint | None:
        if not isinstance(raw, dict):
            return None
        component_id = ensure_string(pick(raw, "component_id", "componentId"))
        if not component_id:
            return None
        return cls(
            component_id=component_id,
            entry_point_id=ensure_string(pick(raw, "entry_point_id", "entryPointId")) or None,
        )


@dataclass
class Step:
    name: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    source_system_id: str = ""
    target_system_id: str = ""
    source: StepEndpoint | None = None
    target: StepEndpoint | None = None
    alternate_flow_ids: list[str] = field(default_factory=list)
    id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "source_system_id": self.source_system_id,
            "target_system_id": self.target_system_id,
            "source": self.source.to_dict() if self.source else None,
            "target": self.target.to_dict() if self.target else None,
            "alternate_flow_ids": list(self.alternate_flow_ids),
        }

    @classmethod
    def from_dict(cls, raw) -> Step:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            id=ensure_string(raw.get("id")) or None,
            name=ensure_string(raw.get("name")),
            description=ensure_string(raw.get("description")),
            tags=ensure_string_list(raw.get("tags")),
            source_system_id=ensure_string(pick(raw, "source_system_id", "sourceSystemId")),
            target_system_id=ensure_string(pick(raw, "target_system_id", "targetSystemId")),
            source=StepEndpoint.from_dict(raw.get("source")),
            target=StepEndpoint.from_dict(raw.get("target")),
            alternate_flow_ids=ensure_string_list(pick(raw, "alternate_flow_ids", "alternateFlowIds")),
        )


@dataclass
class Flow:
    """Interaction scenario scoped to a subset of Systems.

    ``id`` is None on an unsaved draft.
    """
    name: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    system_scope_ids: list[str] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    id: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "system_scope_ids": list(self.system_scope_ids),
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_dict(cls, raw, stored: bool = False) -> Flow:
        raw = raw if isinstance(raw, dict) else {}
        steps_raw = raw.get("steps") if isinstance(raw.get("steps"), list) else []
        steps = [Step.from_dict(s) for s in steps_raw]
        if stored:
            steps = [s for s in steps if s.id and s.name]
        return cls(
            id=ensure_string(raw.get("id")) or None,
            name=ensure_string(raw.get("name")),
            description=ensure_string(raw.get("description")),
            tags=ensure_string_list(raw.get("tags")),
            system_scope_ids=ensure_string_list(pick(raw, "system_scope_ids", "systemScopeIds")),
            steps=steps,
        )


# ═════════════════════════════════════════════════════════════════════════════
# Data Model, Component, Entry Point
# ═════════════════════════════════════════════════════════════════════════════

@dataclass
class DataModel:
    id: str
    name: str
    description: str = ""
    attributes: list[Attribute] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "attributes": [a.to_dict() for a in self.attributes],
        }

    @classmethod
    def from_dict(cls, raw, stored: bool = False) -> DataModel:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            id=ensure_string(raw.get("id")),
            name=ensure_string(raw.get("name")),
            description=ensure_string(raw.get("description")),
            attributes=attribute_list_from_dicts(raw.get("attributes"), stored),
        )


@dataclass
class EntryPoint:
    id: str
    name: str
    type: str = ""
    description: str = ""
    function_name: str = ""
    protocol: str = ""
    method: str = ""
    path: str = ""
    request_model_ids: list[str] = field(default_factory=list)
    response_model_ids: list[str] = field(default_factory=list)
    request_attributes: list[Attribute] = field(default_factory=list)
    response_attributes: list[Attribute] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "function_name": self.function_name,
            "protocol": self.protocol,
            "method": self.method,
            "path": self.path,
            "request_model_ids": list(self.request_model_ids),
            "response_model_ids": list(self.response_model_ids),
            "request_attributes": [a.to_dict() for a in self.request_attributes],
            "response_attributes": [a.to_dict() for a in self.response_attributes],
        }

    @classmethod
    def from_dict(cls, raw, stored: bool = False) -> EntryPoint:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            id=ensure_string(raw.get("id")),
            name=ensure_string(raw.get("name")),
            type=ensure_string(raw.get("type")),
            description=ensure_string(raw.get("description")),
            function_name=ensure_string(pick(raw, "function_name", "functionName")),
            protocol=ensure_string(raw.get("protocol")),
            method=ensure_string(raw.get("method")),
            path=ensure_string(raw.get("path")),
            request_model_ids=ensure_string_list(pick(raw, "request_model_ids", "requestModelIds")),
            response_model_ids=ensure_string_list(pick(raw, "response_model_ids", "responseModelIds")),
            request_attributes=attribute_list_from_dicts(
                pick(raw, "request_attributes", "requestAttributes"), stored
            ),
            response_attributes=attribute_list_from_dicts(
                pick(raw, "response_attributes", "responseAttributes"), stored
            ),
        )


@dataclass
class Component:
    id: str
    name: str
    description: str = ""
    entry_point_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "entry_point_ids": list(self.entry_point_ids),
        }

    @classmethod
    def from_dict(cls, raw) -> Component:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            id=ensure_string(raw.get("id")),
            name=ensure_string(raw.get("name")),
            description=ensure_string(raw.get("description")),
            entry_point_ids=ensure_string_list(pick(raw, "entry_point_ids", "entryPointIds")),
        )


# ═════════════════════════════════════════════════════════════════════════════
# Project & aggregate
# ═════════════════════════════════════════════════════════════════════════════

def _keyed(raw, build, keep) -> dict:
    """Rebuild an id-keyed collection, dropping entries ``keep`` rejects."""
    if not isinstance(raw, dict):
        return {}
    result = {}
    for key, value in raw.items():
        if not isinstance(value, dict):
            continue
        entity = build({**value, "id": value.get("id") or key})
        if keep(entity):
            result[entity.id] = entity
    return result


@dataclass
class Project:
    id: str
    name: str
    root_system_id: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    shared_with: list[str] = field(default_factory=list)
    systems: dict[str, System] = field(default_factory=dict)
    flows: dict[str, Flow] = field(default_factory=dict)
    data_models: dict[str, DataModel] = field(default_factory=dict)
    components: dict[str, Component] = field(default_factory=dict)
    entry_points: dict[str, EntryPoint] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "shared_with": list(self.shared_with),
            "root_system_id": self.root_system_id,
            "systems": {k: v.to_dict() for k, v in self.systems.items()},
            "flows": {k: v.to_dict() for k, v in self.flows.items()},
            "data_models": {k: v.to_dict() for k, v in self.data_models.items()},
            "components": {k: v.to_dict() for k, v in self.components.items()},
            "entry_points": {k: v.to_dict() for k, v in self.entry_points.items()},
        }

    def summary(self) -> dict:
        """Listing view without the owned collections."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "shared_with": list(self.shared_with),
            "root_system_id": self.root_system_id,
        }

    @classmethod
    def from_dict(cls, raw) -> Project:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            id=ensure_string(raw.get("id")),
            name=ensure_string(raw.get("name")),
            description=ensure_string(raw.get("description")),
            tags=ensure_string_list(raw.get("tags")),
            shared_with=ensure_string_list(pick(raw, "shared_with", "sharedWith")),
            root_system_id=ensure_string(pick(raw, "root_system_id", "rootSystemId")),
            systems=_keyed(raw.get("systems"), System.from_dict, lambda e: bool(e.id and e.name)),
            flows=_keyed(
                raw.get("flows"),
                lambda r: Flow.from_dict(r, stored=True),
                lambda e: bool(e.id and e.name),
            ),
            data_models=_keyed(
                pick(raw, "data_models", "dataModels"),
                lambda r: DataModel.from_dict(r, stored=True),
                lambda e: bool(e.id and e.name),
            ),
            components=_keyed(raw.get("components"), Component.from_dict, lambda e: bool(e.id and e.name)),
            entry_points=_keyed(
                pick(raw, "entry_points", "entryPoints"),
                lambda r: EntryPoint.from_dict(r, stored=True),
                lambda e: bool(e.id and e.name and e.type),
            ),
        )


@dataclass
class DomainAggregate:
    """Every Project one owner can see, persisted as one document."""
    projects: dict[str, Project] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"projects": {k: v.to_dict() for k, v in self.projects.items()}}

    @classmethod
    def from_dict(cls, raw) -> DomainAggregate:
        raw = raw if isinstance(raw, dict) else {}
        return cls(
            projects=_keyed(
                raw.get("projects"),
                Project.from_dict,
                lambda p: bool(p.id and p.name and p.root_system_id),
            )
        )
