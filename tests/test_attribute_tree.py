"""
tests/test_attribute_tree.py — Recursive attribute tree operations.

Covers:
    1. add at top level and under an object parent
    2. add under a missing or non-object parent
    3. update rebuilds only the path to the target
    4. remove prunes whole subtrees, including array elements
    5. validate collects every problem with a readable path
    6. assign_ids keeps known ids and mints the rest
"""

from dataclasses import replace

import pytest

from architekt.core.exceptions import NotFoundError, ValidationError
from architekt.models.architecture import Attribute, Constraint
from architekt.services import attribute_tree


def _node(local_id, type_="string", name=None, **kw):
    return Attribute(local_id=local_id, name=name or local_id, type=type_, **kw)


@pytest.fixture()
def tree():
    """[customer{email, address{street}}, tags[item], note]"""
    street = _node("street")
    address = _node("address", "object", attributes=[street])
    customer = _node("customer", "object", attributes=[_node("email"), address])
    tags = _node("tags", "array", element=_node("item"))
    return [customer, tags, _node("note")]


# ═════════════════════════════════════════════════════════════════════════════
# find / add
# ═════════════════════════════════════════════════════════════════════════════


class TestFindAndAdd:
    def test_find_nested(self, tree):
        assert attribute_tree.find(tree, "street").name == "street"

    def test_find_inside_array_element(self, tree):
        assert attribute_tree.find(tree, "item").name == "item"

    def test_find_missing_returns_none(self, tree):
        assert attribute_tree.find(tree, "nope") is None

    def test_add_top_level_appends_without_mutating(self, tree):
        result = attribute_tree.add(tree, None, _node("extra"))
        assert [a.local_id for a in result] == ["customer", "tags", "note", "extra"]
        assert len(tree) == 3

    def test_add_under_object_parent(self, tree):
        result = attribute_tree.add(tree, "address", _node("city"))
        address = attribute_tree.find(result, "address")
        assert [a.local_id for a in address.attributes] == ["street", "city"]
        assert attribute_tree.find(tree, "city") is None

    def test_add_under_missing_parent_raises(self, tree):
        with pytest.raises(NotFoundError):
            attribute_tree.add(tree, "ghost", _node("x"))

    def test_add_under_non_object_raises(self, tree):
        with pytest.raises(ValidationError, match="not an object"):
            attribute_tree.add(tree, "note", _node("x"))


# ═════════════════════════════════════════════════════════════════════════════
# update
# ═════════════════════════════════════════════════════════════════════════════


class TestUpdate:
    def test_update_replaces_target(self, tree):
        result = attribute_tree.update(tree, "street", lambda a: replace(a, required=True))
        assert attribute_tree.find(result, "street").required is True
        assert attribute_tree.find(tree, "street").required is False

    def test_update_keeps_siblings_identity(self, tree):
        result = attribute_tree.update(tree, "street", lambda a: replace(a, name="line1"))
        assert result[0] is not tree[0]
        assert result[1] is tree[1]
        assert result[2] is tree[2]
        assert result[0].attributes[0] is tree[0].attributes[0]

    def test_update_array_element(self, tree):
        result = attribute_tree.update(tree, "item", lambda a: replace(a, type="integer"))
        assert result[1].element.type == "integer"

    def test_update_missing_raises(self, tree):
        with pytest.raises(NotFoundError):
            attribute_tree.update(tree, "ghost", lambda a: a)


# ═════════════════════════════════════════════════════════════════════════════
# remove
# ═════════════════════════════════════════════════════════════════════════════


class TestRemove:
    def test_remove_object_takes_subtree(self):
        tree = [_node("a1", "object", attributes=[_node("a2")])]
        assert attribute_tree.remove(tree, "a1") == []

    def test_removed_subtree_unreachable(self, tree):
        result = attribute_tree.remove(tree, "customer")
        remaining = {a.local_id for a in attribute_tree.iter_attributes(result)}
        assert remaining == {"tags", "item", "note"}

    def test_remove_nested_child(self, tree):
        result = attribute_tree.remove(tree, "street")
        assert attribute_tree.find(result, "address").attributes == []

    def test_remove_array_element(self, tree):
        result = attribute_tree.remove(tree, "item")
        assert result[1].element is None

    def test_remove_missing_returns_same_list(self, tree):
        assert attribute_tree.remove(tree, "ghost") is tree

    def test_collect_local_ids(self, tree):
        assert attribute_tree.collect_local_ids(tree[0]) == {"customer", "email", "address", "street"}


# ═════════════════════════════════════════════════════════════════════════════
# validate
# ═════════════════════════════════════════════════════════════════════════════


class TestValidate:
    def test_valid_tree(self, tree):
        assert attribute_tree.validate(tree) == []

    def test_collects_every_problem(self):
        tree = [
            Attribute(local_id="x1", name="", type="string"),
            Attribute(local_id="x2", name="age", type="duration"),
            _node("code", constraints=[Constraint("min", 1)]),
            _node("flag", "boolean", attributes=[_node("inner")]),
        ]
        errors = attribute_tree.validate(tree)
        assert "#1: Attribute name is required." in errors
        assert "age: Unknown attribute type 'duration'." in errors
        assert "code: Constraint 'min' is not allowed for type 'string'." in errors
        assert "flag: Only object attributes can have child attributes." in errors

    def test_duplicate_constraint_kind(self):
        tree = [_node("code", constraints=[Constraint("minLength", 1), Constraint("minLength", 2)])]
        assert attribute_tree.validate(tree) == ["code: Duplicate 'minLength' constraint."]

    def test_nested_paths(self):
        tree = [_node("customer", "object", attributes=[_node("zip", "", name="zip")])]
        assert attribute_tree.validate(tree, prefix="request") == [
            "request.customer.zip: Attribute type is required."
        ]

    def test_element_on_non_array(self):
        tree = [_node("tags", "string", element=_node("item"))]
        assert attribute_tree.validate(tree) == ["tags: Only array attributes can define an element."]


# ═════════════════════════════════════════════════════════════════════════════
# assign_ids
# ═════════════════════════════════════════════════════════════════════════════


class TestAssignIds:
    def test_new_nodes_get_minted_ids(self, tree):
        result = attribute_tree.assign_ids(tree, set())
        ids = [a.id for a in attribute_tree.iter_attributes(result)]
        assert all(ids)
        assert len(set(ids)) == len(ids)
        assert all(a.local_id == a.id for a in attribute_tree.iter_attributes(result))

    def test_known_ids_kept(self):
        tree = [Attribute(local_id="tmp", id="persisted-1", name="email", type="string")]
        result = attribute_tree.assign_ids(tree, {"persisted-1"})
        assert result[0].id == "persisted-1"

    def test_foreign_ids_replaced(self):
        tree = [Attribute(local_id="tmp", id="from-elsewhere", name="email", type="string")]
        result = attribute_tree.assign_ids(tree, set())
        assert result[0].id != "from-elsewhere"

    def test_duplicate_known_id_reminted(self):
        tree = [
            Attribute(local_id="a", id="p1", name="a", type="string"),
            Attribute(local_id="b", id="p1", name="b", type="string"),
        ]
        result = attribute_tree.assign_ids(tree, {"p1"})
        assert result[0].id == "p1"
        assert result[1].id != "p1"

    def test_constraints_sanitised(self):
        tree = [_node("code", constraints=[Constraint("maxLength", "10"), Constraint("maxLength", 3)])]
        result = attribute_tree.assign_ids(tree, set())
        assert result[0].constraints == [Constraint("maxLength", 10)]
