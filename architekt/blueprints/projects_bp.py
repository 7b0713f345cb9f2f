"""
Projects blueprint: the JSON boundary over ProjectAggregateStore.

Endpoint groups (all under /api/v1):
  Projects        GET/POST          /projects
                  GET/PUT/DELETE    /projects/<project_id>
  Systems         GET/POST          /projects/<project_id>/systems
                  GET/PUT/DELETE    /projects/<project_id>/systems/<system_id>
  Flows           GET/POST          /projects/<project_id>/flows   (?scope=&tag=)
                  POST              /projects/<project_id>/flows/validate
                  GET/PUT/DELETE    /projects/<project_id>/flows/<flow_id>
  Data models     GET/POST          /projects/<project_id>/data-models
                  GET/PUT/DELETE    /projects/<project_id>/data-models/<data_model_id>
                  POST              /projects/<project_id>/data-models/<data_model_id>/attributes
                  PUT/DELETE        /projects/<project_id>/data-models/<data_model_id>/attributes/<local_id>
  Components      GET/POST          /projects/<project_id>/components
                  GET/PUT/DELETE    /projects/<project_id>/components/<component_id>
  Entry points    GET/POST          /projects/<project_id>/components/<component_id>/entry-points
                  GET/PUT/DELETE    /projects/<project_id>/components/<component_id>/entry-points/<entry_point_id>
  Tools           POST              /tools/regex-pattern

The owner of every call is the opaque user id resolved by
middleware.user_context. The store owns all business rules; views only
translate HTTP to store calls.
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from architekt.core.exceptions import NotFoundError, ValidationError
from architekt.middleware.user_context import current_user_id
from architekt.services.constraint_engine import RegexBuilderOptions, build_regex_pattern
from architekt.services.project_store import ProjectAggregateStore
from architekt.utils.errors import E, api_error
from architekt.utils.helpers import pick

logger = logging.getLogger(__name__)

projects_bp = Blueprint("projects", __name__, url_prefix="/api/v1")


# ── Helpers ───────────────────────────────────────────────────────────────────


def _store() -> ProjectAggregateStore:
    return current_app.extensions["architekt_store"]


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _list_arg(name: str) -> list[str]:
    """Repeated or comma-separated query values: ?tag=a&tag=b or ?tag=a,b."""
    values = []
    for raw in request.args.getlist(name):
        values += [part.strip() for part in raw.split(",") if part.strip()]
    return values


def _component_dict(component, entry_points) -> dict:
    return {**component.to_dict(), "entry_points": [ep.to_dict() for ep in entry_points]}


# ── Error handlers ────────────────────────────────────────────────────────────


@projects_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@projects_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    code = E.VALIDATION_INVALID if error.details else E.VALIDATION_REQUIRED
    return api_error(code, error.message, details=error.details)


@projects_bp.errorhandler(SQLAlchemyError)
def _handle_database(error: SQLAlchemyError):
    logger.error("Database error in projects_bp endpoint=%s: %s", request.endpoint, error)
    return api_error(E.DATABASE, "Database error")


@projects_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    logger.exception("Unexpected error in projects_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Internal server error")


# ═════════════════════════════════════════════════════════════════════════
# Projects
# ═════════════════════════════════════════════════════════════════════════


@projects_bp.route("/projects", methods=["GET"])
def list_projects():
    """Summaries of every Project visible to the caller."""
    projects = _store().list_projects(current_user_id())
    return jsonify([p.summary() for p in projects]), 200


@projects_bp.route("/projects", methods=["POST"])
def create_project():
    """Body: {name, description?, tags?}. Also creates the root System."""
    project = _store().create_project(current_user_id(), _payload())
    return jsonify(project.to_dict()), 201


@projects_bp.route("/projects/<project_id>", methods=["GET"])
def get_project(project_id):
    project = _store().get_project(current_user_id(), project_id)
    return jsonify(project.to_dict()), 200


@projects_bp.route("/projects/<project_id>", methods=["PUT"])
def update_project(project_id):
    project = _store().update_project(current_user_id(), project_id, _payload())
    return jsonify(project.to_dict()), 200


@projects_bp.route("/projects/<project_id>", methods=["DELETE"])
def delete_project(project_id):
    _store().delete_project(current_user_id(), project_id)
    return "", 204


# ═════════════════════════════════════════════════════════════════════════
# Systems
# ═════════════════════════════════════════════════════════════════════════


@projects_bp.route("/projects/<project_id>/systems", methods=["GET"])
def list_systems(project_id):
    systems = _store().list_systems(current_user_id(), project_id)
    return jsonify([s.to_dict() for s in systems]), 200


@projects_bp.route("/projects/<project_id>/systems", methods=["POST"])
def create_system(project_id):
    """Body: {name, description?, tags?, parent_id?}. Parent defaults to the root."""
    system = _store().create_system(current_user_id(), project_id, _payload())
    return jsonify(system.to_dict()), 201


@projects_bp.route("/projects/<project_id>/systems/<system_id>", methods=["GET"])
def get_system(project_id, system_id):
    system = _store().get_system(current_user_id(), project_id, system_id)
    return jsonify(system.to_dict()), 200


@projects_bp.route("/projects/<project_id>/systems/<system_id>", methods=["PUT"])
def update_system(project_id, system_id):
    system = _store().update_system(current_user_id(), project_id, system_id, _payload())
    return jsonify(system.to_dict()), 200


@projects_bp.route("/projects/<project_id>/systems/<system_id>", methods=["DELETE"])
def delete_system(project_id, system_id):
    """Cascading delete of the System and its whole subtree."""
    _store().delete_system(current_user_id(), project_id, system_id)
    return "", 204


# ═════════════════════════════════════════════════════════════════════════
# Flows
# ═════════════════════════════════════════════════════════════════════════


@projects_bp.route("/projects/<project_id>/flows", methods=["GET"])
def list_flows(project_id):
    """Query params: scope (system ids), tag. Every given value must match."""
    flows = _store().list_flows(
        current_user_id(), project_id, scope=_list_arg("scope"), tags=_list_arg("tag")
    )
    return jsonify([f.to_dict() for f in flows]), 200


@projects_bp.route("/projects/<project_id>/flows", methods=["POST"])
def create_flow(project_id):
    flow = _store().create_flow(current_user_id(), project_id, _payload())
    return jsonify(flow.to_dict()), 201


@projects_bp.route("/projects/<project_id>/flows/validate", methods=["POST"])
def validate_flow(project_id):
    """Dry-run validation of a Flow draft; nothing is saved.

    Query params: flow_id (optional, validate as an edit of that Flow).
    Returns: {flow_errors, step_errors, is_valid} with status 200.
    """
    result = _store().validate_flow(
        current_user_id(), project_id, _payload(), flow_id=request.args.get("flow_id") or None
    )
    return jsonify(result), 200


@projects_bp.route("/projects/<project_id>/flows/<flow_id>", methods=["GET"])
def get_flow(project_id, flow_id):
    flow = _store().get_flow(current_user_id(), project_id, flow_id)
    return jsonify(flow.to_dict()), 200


@projects_bp.route("/projects/<project_id>/flows/<flow_id>", methods=["PUT"])
def update_flow(project_id, flow_id):
    flow = _store().update_flow(current_user_id(), project_id, flow_id, _payload())
    return jsonify(flow.to_dict()), 200


@projects_bp.route("/projects/<project_id>/flows/<flow_id>", methods=["DELETE"])
def delete_flow(project_id, flow_id):
    _store().delete_flow(current_user_id(), project_id, flow_id)
    return "", 204


# ═════════════════════════════════════════════════════════════════════════
# Data models & attributes
# ═════════════════════════════════════════════════════════════════════════


@projects_bp.route("/projects/<project_id>/data-models", methods=["GET"])
def list_data_models(project_id):
    data_models = _store().list_data_models(current_user_id(), project_id)
    return jsonify([dm.to_dict() for dm in data_models]), 200


@projects_bp.route("/projects/<project_id>/data-models", methods=["POST"])
def create_data_model(project_id):
    data_model = _store().create_data_model(current_user_id(), project_id, _payload())
    return jsonify(data_model.to_dict()), 201


@projects_bp.route("/projects/<project_id>/data-models/<data_model_id>", methods=["GET"])
def get_data_model(project_id, data_model_id):
    data_model = _store().get_data_model(current_user_id(), project_id, data_model_id)
    return jsonify(data_model.to_dict()), 200


@projects_bp.route("/projects/<project_id>/data-models/<data_model_id>", methods=["PUT"])
def update_data_model(project_id, data_model_id):
    data_model = _store().update_data_model(current_user_id(), project_id, data_model_id, _payload())
    return jsonify(data_model.to_dict()), 200


@projects_bp.route("/projects/<project_id>/data-models/<data_model_id>", methods=["DELETE"])
def delete_data_model(project_id, data_model_id):
    _store().delete_data_model(current_user_id(), project_id, data_model_id)
    return "", 204


@projects_bp.route("/projects/<project_id>/data-models/<data_model_id>/attributes", methods=["POST"])
def add_attribute(project_id, data_model_id):
    """Body: attribute fields plus optional parent_local_id (an object attribute)."""
    data = _payload()
    parent_local_id = pick(data, "parent_local_id", "parentLocalId") or None
    data.pop("parent_local_id", None)
    data.pop("parentLocalId", None)
    data_model = _store().add_attribute(current_user_id(), project_id, data_model_id, parent_local_id, data)
    return jsonify(data_model.to_dict()), 201


@projects_bp.route(
    "/projects/<project_id>/data-models/<data_model_id>/attributes/<local_id>", methods=["PUT"]
)
def update_attribute(project_id, data_model_id, local_id):
    data_model = _store().update_attribute(current_user_id(), project_id, data_model_id, local_id, _payload())
    return jsonify(data_model.to_dict()), 200


@projects_bp.route(
    "/projects/<project_id>/data-models/<data_model_id>/attributes/<local_id>", methods=["DELETE"]
)
def remove_attribute(project_id, data_model_id, local_id):
    """Removes the attribute with its whole subtree; returns the updated data model."""
    data_model = _store().remove_attribute(current_user_id(), project_id, data_model_id, local_id)
    return jsonify(data_model.to_dict()), 200


# ═════════════════════════════════════════════════════════════════════════
# Components & entry points
# ═════════════════════════════════════════════════════════════════════════


@projects_bp.route("/projects/<project_id>/components", methods=["GET"])
def list_components(project_id):
    components = _store().list_components(current_user_id(), project_id)
    return jsonify([_component_dict(c, eps) for c, eps in components]), 200


@projects_bp.route("/projects/<project_id>/components", methods=["POST"])
def create_component(project_id):
    """Body: {name, description?, entry_points?: [...]}."""
    component, entry_points = _store().create_component(current_user_id(), project_id, _payload())
    return jsonify(_component_dict(component, entry_points)), 201


@projects_bp.route("/projects/<project_id>/components/<component_id>", methods=["GET"])
def get_component(project_id, component_id):
    component, entry_points = _store().get_component(current_user_id(), project_id, component_id)
    return jsonify(_component_dict(component, entry_points)), 200


@projects_bp.route("/projects/<project_id>/components/<component_id>", methods=["PUT"])
def update_component(project_id, component_id):
    component, entry_points = _store().update_component(current_user_id(), project_id, component_id, _payload())
    return jsonify(_component_dict(component, entry_points)), 200


@projects_bp.route("/projects/<project_id>/components/<component_id>", methods=["DELETE"])
def delete_component(project_id, component_id):
    _store().delete_component(current_user_id(), project_id, component_id)
    return "", 204


@projects_bp.route("/projects/<project_id>/components/<component_id>/entry-points", methods=["GET"])
def list_entry_points(project_id, component_id):
    entry_points = _store().list_entry_points(current_user_id(), project_id, component_id)
    return jsonify([ep.to_dict() for ep in entry_points]), 200


@projects_bp.route("/projects/<project_id>/components/<component_id>/entry-points", methods=["POST"])
def create_entry_point(project_id, component_id):
    entry_point = _store().create_entry_point(current_user_id(), project_id, component_id, _payload())
    return jsonify(entry_point.to_dict()), 201


@projects_bp.route(
    "/projects/<project_id>/components/<component_id>/entry-points/<entry_point_id>", methods=["GET"]
)
def get_entry_point(project_id, component_id, entry_point_id):
    entry_point = _store().get_entry_point(current_user_id(), project_id, component_id, entry_point_id)
    return jsonify(entry_point.to_dict()), 200


@projects_bp.route(
    "/projects/<project_id>/components/<component_id>/entry-points/<entry_point_id>", methods=["PUT"]
)
def update_entry_point(project_id, component_id, entry_point_id):
    entry_point = _store().update_entry_point(
        current_user_id(), project_id, component_id, entry_point_id, _payload()
    )
    return jsonify(entry_point.to_dict()), 200


@projects_bp.route(
    "/projects/<project_id>/components/<component_id>/entry-points/<entry_point_id>", methods=["DELETE"]
)
def delete_entry_point(project_id, component_id, entry_point_id):
    _store().delete_entry_point(current_user_id(), project_id, component_id, entry_point_id)
    return "", 204


# ── Tools ─────────────────────────────────────────────────────────────────────


@projects_bp.route("/tools/regex-pattern", methods=["POST"])
def regex_pattern():
    """Build a regex constraint value from character classes and a length mode.

    Body: {alpha_lowercase?, alpha_uppercase?, numeric?, hexadecimal?, ascii?,
           length_mode: none|exact|range, length_exact?, length_min?, length_max?}
    Returns: {"pattern": "^[...]...$"}
    """
    pattern = build_regex_pattern(RegexBuilderOptions.from_dict(_payload()))
    return jsonify({"pattern": pattern}), 200
