"""System hierarchy edits on a Project: add under a parent, cascading remove.

Both functions mutate the Project they are given. The aggregate store only
ever hands them a deep copy, so the loaded aggregate stays untouched until
the save succeeds.
"""

from __future__ import annotations

from architekt.core.exceptions import NotFoundError, ValidationError
from architekt.models.architecture import Project, System


def get_system(project: Project, system_id: str) -> System:
    system = project.systems.get(system_id)
    if system is None:
        raise NotFoundError("System", system_id, scope=project.id)
    return system


def collect_descendants(project: Project, system_id: str) -> list[str]:
    """``system_id`` plus every transitive child id.

    Iterative and visited-guarded, so a malformed cyclic ``child_ids`` graph
    terminates. Child ids with no matching System are still reported so the
    caller can purge them.
    """
    visited: list[str] = []
    seen = set()
    stack = [system_id]
    while stack:
        current = stack.pop()
        if current in seen:
            continue
        seen.add(current)
        visited.append(current)
        system = project.systems.get(current)
        if system is None:
            continue
        stack.extend(system.child_ids)
    return visited


def find_parent_id(project: Project, system_id: str) -> str | None:
    for candidate in project.systems.values():
        if system_id in candidate.child_ids:
            return candidate.id
    return None


def add(project: Project, parent_id: str, system: System) -> System:
    """Attach ``system`` as the last child of ``parent_id``.

    Raises:
        NotFoundError: the parent does not exist.
    """
    parent = get_system(project, parent_id)
    system.child_ids = []
    system.is_root = False
    project.systems[system.id] = system
    if system.id not in parent.child_ids:
        parent.child_ids.append(system.id)
    return system


def remove(project: Project, system_id: str) -> list[str]:
    """Delete ``system_id`` and its whole subtree; return the removed ids.

    Raises:
        NotFoundError: the system does not exist.
        ValidationError: the system is the root.
    """
    system = get_system(project, system_id)
    if system.is_root:
        raise ValidationError("Root system cannot be deleted", details={"system_id": system_id})

    removed = collect_descendants(project, system_id)

    parent_id = find_parent_id(project, system_id)
    if parent_id is not None:
        parent = project.systems[parent_id]
        parent.child_ids = [child for child in parent.child_ids if child != system_id]

    for removed_id in removed:
        project.systems.pop(removed_id, None)
    return removed
