"""
Constraint engine — which constraints an attribute type may carry, how a
constraint value is authored, and the regex-builder authoring aid.

Legal kinds per type:
    string            regex, minLength, maxLength, enum
    number / integer  min, max, enum
    everything else   enum

``enum`` is legal for every type. Changing an attribute's type clears its
whole constraint list.

Usage:
    from architekt.services import constraint_engine as ce

    attr = ce.add_constraint(attr, "maxLength", "64")
    attr = ce.change_attribute_type(attr, "number")      # constraints == []
    pattern = ce.build_regex_pattern(RegexBuilderOptions(numeric=True))
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from architekt.core.exceptions import ValidationError
from architekt.models.architecture import (
    Attribute,
    AttributeType,
    Constraint,
    ConstraintKind,
    CONSTRAINT_KINDS,
    coerce_constraint,
)
from architekt.utils.helpers import ensure_number, pick

_STRING_KINDS = frozenset({
    ConstraintKind.REGEX.value,
    ConstraintKind.MIN_LENGTH.value,
    ConstraintKind.MAX_LENGTH.value,
})
_NUMERIC_KINDS = frozenset({ConstraintKind.MIN.value, ConstraintKind.MAX.value})
_ANY_TYPE_KINDS = frozenset({ConstraintKind.ENUM.value})

_VALUE_ERRORS = {
    ConstraintKind.REGEX.value: "Enter a constraint value.",
    ConstraintKind.MIN_LENGTH.value: "Enter a non-negative integer value.",
    ConstraintKind.MAX_LENGTH.value: "Enter a non-negative integer value.",
    ConstraintKind.MIN.value: "Enter a valid numeric value.",
    ConstraintKind.MAX.value: "Enter a valid numeric value.",
    ConstraintKind.ENUM.value: "Enter at least one value.",
}


def legal_constraint_kinds(attribute_type: str) -> frozenset[str]:
    if attribute_type == AttributeType.STRING.value:
        return _STRING_KINDS | _ANY_TYPE_KINDS
    if attribute_type in (AttributeType.NUMBER.value, AttributeType.INTEGER.value):
        return _NUMERIC_KINDS | _ANY_TYPE_KINDS
    return _ANY_TYPE_KINDS


def constraint_problem(attribute_type: str, constraint: Constraint) -> str | None:
    """Return the reason ``constraint`` cannot sit on ``attribute_type``, or None."""
    if constraint.kind not in CONSTRAINT_KINDS:
        return f"Unknown constraint kind '{constraint.kind}'."
    if constraint.kind not in legal_constraint_kinds(attribute_type):
        return f"Constraint '{constraint.kind}' is not allowed for type '{attribute_type or 'unset'}'."
    if coerce_constraint(constraint.kind, constraint.value, constraint.values) is None:
        return f"Constraint '{constraint.kind}': {_VALUE_ERRORS[constraint.kind]}"
    return None


def parse_constraint(attribute_type: str, kind: str, value=None) -> Constraint:
    """Author a constraint for an attribute of ``attribute_type``.

    Raises:
        ValidationError: kind unknown or illegal for the type, or bad value.
    """
    if not kind:
        raise ValidationError("Select a constraint type.")
    if kind not in CONSTRAINT_KINDS:
        raise ValidationError(f"Unknown constraint kind '{kind}'.")
    if kind not in legal_constraint_kinds(attribute_type):
        raise ValidationError(
            f"Constraint '{kind}' is not allowed for type '{attribute_type or 'unset'}'.",
            details={"kind": kind, "type": attribute_type},
        )
    constraint = coerce_constraint(kind, value, value if kind == ConstraintKind.ENUM.value else None)
    if constraint is None:
        raise ValidationError(_VALUE_ERRORS[kind], details={"kind": kind})
    return constraint


def add_constraint(attribute: Attribute, kind: str, value=None) -> Attribute:
    """Return ``attribute`` with one more constraint; one per kind at most."""
    if any(c.kind == kind for c in attribute.constraints):
        raise ValidationError(f"Attribute already has a '{kind}' constraint.", details={"kind": kind})
    constraint = parse_constraint(attribute.type, kind, value)
    return replace(attribute, constraints=[*attribute.constraints, constraint])


def remove_constraint(attribute: Attribute, kind: str) -> Attribute:
    return replace(attribute, constraints=[c for c in attribute.constraints if c.kind != kind])


def change_attribute_type(attribute: Attribute, new_type: str) -> Attribute:
    """Switch type, dropping whatever the new type can no longer hold.

    Constraints are cleared on any actual type change. Children survive only
    for ``object`` and the element only for ``array``.
    """
    if new_type == attribute.type:
        return attribute
    return replace(
        attribute,
        type=new_type,
        constraints=[],
        attributes=list(attribute.attributes) if new_type == AttributeType.OBJECT.value else [],
        element=attribute.element if new_type == AttributeType.ARRAY.value else None,
    )


# ═════════════════════════════════════════════════════════════════════════════
# Regex builder
# ═════════════════════════════════════════════════════════════════════════════

LENGTH_MODES = ("none", "exact", "range")

_CLASS_PARTS = (
    ("alpha_lowercase", "a-z"),
    ("alpha_uppercase", "A-Z"),
    ("numeric", "0-9"),
    ("hexadecimal", "A-Fa-f0-9"),
    ("ascii", r"\x20-\x7E"),
)


@dataclass
class RegexBuilderOptions:
    alpha_lowercase: bool = False
    alpha_uppercase: bool = False
    numeric: bool = False
    hexadecimal: bool = False
    ascii: bool = False
    length_mode: str = "none"
    length_exact: str | int | None = None
    length_min: str | int | None = None
    length_max: str | int | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> RegexBuilderOptions:
        raw = raw or {}
        return cls(
            alpha_lowercase=bool(pick(raw, "alpha_lowercase", "alphaLowercase")),
            alpha_uppercase=bool(pick(raw, "alpha_uppercase", "alphaUppercase")),
            numeric=bool(raw.get("numeric")),
            hexadecimal=bool(raw.get("hexadecimal")),
            ascii=bool(raw.get("ascii")),
            length_mode=pick(raw, "length_mode", "lengthMode") or "none",
            length_exact=pick(raw, "length_exact", "lengthExact"),
            length_min=pick(raw, "length_min", "lengthMin"),
            length_max=pick(raw, "length_max", "lengthMax"),
        )


def _length_number(value):
    # Blank input counts as 0, the way a numeric form field reads it.
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    return ensure_number(value)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _quantifier(options: RegexBuilderOptions) -> str:
    if options.length_mode == "none":
        return "+"

    if options.length_mode == "exact":
        exact = _length_number(options.length_exact)
        if not isinstance(exact, int) or exact <= 0:
            raise ValidationError("Enter a positive integer for exact length.")
        return f"{{{exact}}}"

    if options.length_mode != "range":
        raise ValidationError(f"Unknown length mode '{options.length_mode}'.")

    minimum = _length_number(options.length_min)
    if not isinstance(minimum, int) or minimum < 0:
        raise ValidationError("Enter a non-negative integer for minimum length.")

    if _is_blank(options.length_max):
        return f"{{{minimum},}}"

    maximum = ensure_number(options.length_max)
    if not isinstance(maximum, int) or maximum < minimum:
        raise ValidationError(
            "Maximum length must be an integer greater than or equal to minimum length."
        )
    return f"{{{minimum},{maximum}}}"


def build_regex_pattern(options: RegexBuilderOptions) -> str:
    """Compose ``^[<classes>]<quantifier>$`` from the selected options.

    Raises:
        ValidationError: no character class selected, or bad length bounds.
    """
    parts = []
    for flag, part in _CLASS_PARTS:
        if getattr(options, flag) and part not in parts:
            parts.append(part)
    if not parts:
        raise ValidationError("Select at least one character option.")

    return f"^[{''.join(parts)}]{_quantifier(options)}$"
