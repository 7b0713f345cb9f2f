"""
Engine-wide exception hierarchy.

Every service in ``architekt.services`` raises one of these types. The
blueprints register handlers against them once and get consistent HTTP
status codes everywhere (404 for NotFoundError, 400 for ValidationError).

Usage:
    from architekt.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="System", resource_id=system_id)
    raise ValidationError("Flow name is required")
    raise ValidationError("Flow validation failed", details=result.to_dict())
"""


class NotFoundError(Exception):
    """Raised when a referenced entity does not exist in the loaded aggregate.

    Raised fail-fast at the point of lookup.

    Args:
        resource: Human-readable entity name (e.g. "Project", "System").
        resource_id: The id that was looked up.
        scope: Optional id of the containing entity, for the message only.
    """

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        scope: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        self.scope = scope
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" {resource_id}"
        msg += " not found"
        if scope is not None:
            msg += f" in project {scope}"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when a mutation would leave the Project aggregate invalid.

    Simple field checks ("name is required", root deletion) raise with an
    empty ``details``. Collected checks (FlowValidator, attribute trees)
    raise once with every problem in ``details`` so callers can surface all
    of them at once.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional structured breakdown (e.g. ``flow_errors``,
                 ``step_errors``, ``attributes``, ``cycle``).
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)
