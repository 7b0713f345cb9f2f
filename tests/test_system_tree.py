"""
tests/test_system_tree.py — System hierarchy add and cascading remove.

Covers:
    1. add appends under the parent without duplicates
    2. add under a missing parent raises NotFoundError
    3. remove takes the whole subtree and unlinks it from the parent
    4. the root can never be removed
    5. malformed cyclic child graphs still terminate
"""

import pytest

from architekt.core.exceptions import NotFoundError, ValidationError
from architekt.models.architecture import Project, System
from architekt.services import system_tree


def _project():
    """R → [A → [A1 → [A1x]], B]"""
    systems = {
        "R": System(id="R", name="Root", is_root=True, child_ids=["A", "B"]),
        "A": System(id="A", name="Billing", child_ids=["A1"]),
        "A1": System(id="A1", name="Invoices", child_ids=["A1x"]),
        "A1x": System(id="A1x", name="PDF renderer"),
        "B": System(id="B", name="Shipping"),
    }
    return Project(id="p1", name="Shop", root_system_id="R", systems=systems)


class TestAdd:
    def test_add_appends_child(self):
        project = _project()
        system_tree.add(project, "B", System(id="B1", name="Labels", child_ids=["junk"], is_root=True))
        assert project.systems["B"].child_ids == ["B1"]
        assert project.systems["B1"].child_ids == []
        assert project.systems["B1"].is_root is False

    def test_add_same_system_twice_is_deduplicated(self):
        project = _project()
        system_tree.add(project, "B", System(id="B1", name="Labels"))
        system_tree.add(project, "B", System(id="B1", name="Labels"))
        assert project.systems["B"].child_ids == ["B1"]

    def test_add_under_missing_parent(self):
        with pytest.raises(NotFoundError, match="System ghost not found"):
            system_tree.add(_project(), "ghost", System(id="x", name="X"))


class TestRemove:
    def test_remove_leaf_scenario(self):
        project = Project(
            id="p", name="P", root_system_id="R",
            systems={
                "R": System(id="R", name="R", is_root=True, child_ids=["A"]),
                "A": System(id="A", name="A"),
            },
        )
        assert system_tree.remove(project, "A") == ["A"]
        assert set(project.systems) == {"R"}
        assert project.systems["R"].child_ids == []

    def test_remove_cascades_to_descendants(self):
        project = _project()
        removed = system_tree.remove(project, "A")
        assert set(removed) == {"A", "A1", "A1x"}
        assert set(project.systems) == {"R", "B"}
        for system in project.systems.values():
            assert not set(system.child_ids) & set(removed)

    def test_root_removal_refused(self):
        project = _project()
        before = dict(project.systems)
        with pytest.raises(ValidationError, match="Root system cannot be deleted"):
            system_tree.remove(project, "R")
        assert project.systems == before

    def test_childless_root_removal_refused(self):
        project = Project(
            id="p", name="P", root_system_id="R",
            systems={"R": System(id="R", name="R", is_root=True)},
        )
        with pytest.raises(ValidationError):
            system_tree.remove(project, "R")

    def test_remove_missing(self):
        with pytest.raises(NotFoundError):
            system_tree.remove(_project(), "ghost")

    def test_cyclic_children_terminate(self):
        project = _project()
        project.systems["A1x"].child_ids = ["A"]
        removed = system_tree.remove(project, "A")
        assert set(removed) == {"A", "A1", "A1x"}
        assert set(project.systems) == {"R", "B"}


def test_find_parent_id():
    project = _project()
    assert system_tree.find_parent_id(project, "A1") == "A"
    assert system_tree.find_parent_id(project, "R") is None
