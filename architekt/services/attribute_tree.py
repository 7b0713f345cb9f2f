"""
Attribute tree operations, addressed by ``local_id``.

All operations are copy-on-write: the input list is never mutated, and only
the nodes on the path from the root to the target get a new identity.
Siblings and untouched subtrees are shared with the input. An array
attribute's ``element`` is searched like a child.

Usage:
    from architekt.services import attribute_tree

    tree = attribute_tree.add(tree, None, Attribute(local_id="a1", name="customer", type="object"))
    tree = attribute_tree.add(tree, "a1", Attribute(local_id="a2", name="email", type="string"))
    tree = attribute_tree.update(tree, "a2", lambda a: replace(a, required=True))
    tree = attribute_tree.remove(tree, "a1")          # a2 goes with it
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import replace

from architekt.core.exceptions import NotFoundError, ValidationError
from architekt.models.architecture import (
    ATTRIBUTE_TYPES,
    Attribute,
    AttributeType,
    sanitize_constraints,
)
from architekt.services.constraint_engine import constraint_problem
from architekt.utils.helpers import new_id


def find(tree: list[Attribute], local_id: str) -> Attribute | None:
    """Depth-first search for ``local_id``."""
    for node in iter_attributes(tree):
        if node.local_id == local_id:
            return node
    return None


def iter_attributes(tree: list[Attribute]) -> Iterator[Attribute]:
    """Yield every node depth-first, parents before children."""
    for node in tree:
        yield node
        yield from iter_attributes(node.attributes)
        if node.element is not None:
            yield from iter_attributes([node.element])


def collect_local_ids(attribute: Attribute) -> set[str]:
    """Every local id in ``attribute``'s subtree, itself included.

    Callers holding per-node UI state use this before ``remove``.
    """
    return {node.local_id for node in iter_attributes([attribute])}


def _update_in(
    nodes: list[Attribute],
    local_id: str,
    updater: Callable[[Attribute], Attribute],
) -> tuple[list[Attribute], bool]:
    for index, node in enumerate(nodes):
        if node.local_id == local_id:
            replacement = updater(node)
        else:
            children, hit = _update_in(node.attributes, local_id, updater)
            if hit:
                replacement = replace(node, attributes=children)
            elif node.element is not None:
                element, hit = _update_in([node.element], local_id, updater)
                if not hit:
                    continue
                replacement = replace(node, element=element[0])
            else:
                continue
        return [*nodes[:index], replacement, *nodes[index + 1:]], True
    return nodes, False


def update(
    tree: list[Attribute],
    local_id: str,
    updater: Callable[[Attribute], Attribute],
) -> list[Attribute]:
    """Replace the node ``local_id`` with ``updater(node)``.

    Raises:
        NotFoundError: no node with that local id.
    """
    result, hit = _update_in(tree, local_id, updater)
    if not hit:
        raise NotFoundError("Attribute", local_id)
    return result


def add(tree: list[Attribute], parent_local_id: str | None, attribute: Attribute) -> list[Attribute]:
    """Append ``attribute`` at the top level or under an object parent.

    Raises:
        NotFoundError: ``parent_local_id`` is not in the tree.
        ValidationError: the parent is not of type ``object``.
    """
    if parent_local_id is None:
        return [*tree, attribute]

    def _append(parent: Attribute) -> Attribute:
        if parent.type != AttributeType.OBJECT.value:
            raise ValidationError(
                f"Attribute '{parent.name or parent.local_id}' is not an object and cannot hold children.",
                details={"parent_local_id": parent_local_id},
            )
        return replace(parent, attributes=[*parent.attributes, attribute])

    return update(tree, parent_local_id, _append)


def _remove_in(nodes: list[Attribute], local_id: str) -> tuple[list[Attribute], bool]:
    result = []
    changed = False
    for node in nodes:
        if node.local_id == local_id:
            changed = True
            continue
        children, pruned_child = _remove_in(node.attributes, local_id)
        element, pruned_element = node.element, False
        if element is not None:
            remaining, pruned_element = _remove_in([element], local_id)
            element = remaining[0] if remaining else None
        if pruned_child or pruned_element:
            changed = True
            node = replace(node, attributes=children, element=element)
        result.append(node)
    return (result if changed else nodes), changed


def remove(tree: list[Attribute], local_id: str) -> list[Attribute]:
    """Prune ``local_id`` wherever it sits, subtree included."""
    return _remove_in(tree, local_id)[0]


# ═════════════════════════════════════════════════════════════════════════════
# Validation & persistence
# ═════════════════════════════════════════════════════════════════════════════

def _label(node: Attribute, index: int) -> str:
    return node.name or f"#{index + 1}"


def _validate_node(node: Attribute, path: str, errors: list[str]) -> None:
    if not node.name:
        errors.append(f"{path}: Attribute name is required.")
    if not node.type:
        errors.append(f"{path}: Attribute type is required.")
    elif node.type not in ATTRIBUTE_TYPES:
        errors.append(f"{path}: Unknown attribute type '{node.type}'.")

    seen_kinds = set()
    for constraint in node.constraints:
        if constraint.kind in seen_kinds:
            errors.append(f"{path}: Duplicate '{constraint.kind}' constraint.")
            continue
        seen_kinds.add(constraint.kind)
        problem = constraint_problem(node.type, constraint)
        if problem:
            errors.append(f"{path}: {problem}")

    if node.attributes and node.type != AttributeType.OBJECT.value:
        errors.append(f"{path}: Only object attributes can have child attributes.")
    if node.element is not None and node.type != AttributeType.ARRAY.value:
        errors.append(f"{path}: Only array attributes can define an element.")

    for index, child in enumerate(node.attributes):
        _validate_node(child, f"{path}.{_label(child, index)}", errors)
    if node.element is not None:
        _validate_node(node.element, f"{path}[]", errors)


def validate(tree: list[Attribute], prefix: str = "") -> list[str]:
    """Collect every structural problem in the tree; empty list when valid."""
    errors: list[str] = []
    for index, node in enumerate(tree):
        label = _label(node, index)
        _validate_node(node, f"{prefix}.{label}" if prefix else label, errors)
    return errors


def persisted_ids(tree: list[Attribute]) -> set[str]:
    return {node.id for node in iter_attributes(tree) if node.id}


def assign_ids(tree: list[Attribute], known_ids: set[str], _taken: set[str] | None = None) -> list[Attribute]:
    """Give every node a persisted id and normalise its constraints.

    An incoming id is kept only if it already belonged to the same owner
    (``known_ids``) and has not been used earlier in this tree; every other
    node gets a freshly minted id. ``local_id`` becomes the persisted id.
    """
    taken = set() if _taken is None else _taken
    result = []
    for node in tree:
        attr_id = node.id if node.id in known_ids and node.id not in taken else new_id()
        taken.add(attr_id)
        element = None
        if node.element is not None:
            element = assign_ids([node.element], known_ids, taken)[0]
        result.append(replace(
            node,
            id=attr_id,
            local_id=attr_id,
            constraints=sanitize_constraints(node.constraints),
            attributes=assign_ids(node.attributes, known_ids, taken),
            element=element,
        ))
    return result
