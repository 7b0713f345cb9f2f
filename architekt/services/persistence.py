"""
Persistence adapters for the Project aggregate.

The engine only needs two calls: ``load(owner_id)`` returns that owner's
whole ``DomainAggregate`` and ``save(owner_id, aggregate)`` writes it back
as one document. Both adapters run every document through
``DomainAggregate.from_dict`` on load so stored data is always sanitised.

Drivers (``PERSISTENCE_DRIVER``):
    memory      — process-local dict, used by tests and development
    sqlalchemy  — one row per owner in ``aggregate_documents`` (JSON column)
"""

from __future__ import annotations

import copy
import logging

from sqlalchemy.exc import SQLAlchemyError

from architekt.models import db
from architekt.models.aggregate_document import AggregateDocument
from architekt.models.architecture import DomainAggregate

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "local-user"


class PersistenceAdapter:
    """Interface every storage driver implements."""

    def load(self, owner_id: str) -> DomainAggregate:
        raise NotImplementedError

    def save(self, owner_id: str, aggregate: DomainAggregate) -> None:
        raise NotImplementedError


class MemoryPersistence(PersistenceAdapter):
    """Keeps serialised documents so every load hands out a fresh value.

    ``seed`` is either one aggregate (``{"projects": ...}``, assigned to
    ``DEFAULT_OWNER``) or a mapping ``{owner_id: aggregate}``.
    """

    def __init__(self, seed: dict | None = None):
        self._documents: dict[str, dict] = {}
        if not isinstance(seed, dict):
            return
        if "projects" in seed:
            seed = {DEFAULT_OWNER: seed}
        for owner_id, document in seed.items():
            self._documents[owner_id] = DomainAggregate.from_dict(document).to_dict()

    def load(self, owner_id: str) -> DomainAggregate:
        return DomainAggregate.from_dict(copy.deepcopy(self._documents.get(owner_id, {})))

    def save(self, owner_id: str, aggregate: DomainAggregate) -> None:
        self._documents[owner_id] = aggregate.to_dict()


class SqlAlchemyPersistence(PersistenceAdapter):
    """Stores each owner's aggregate in one ``aggregate_documents`` row.

    Requires an application context (Flask-SQLAlchemy session).
    """

    def load(self, owner_id: str) -> DomainAggregate:
        document = db.session.get(AggregateDocument, owner_id)
        if document is None:
            return DomainAggregate()
        return DomainAggregate.from_dict(copy.deepcopy(document.payload or {}))

    def save(self, owner_id: str, aggregate: DomainAggregate) -> None:
        document = db.session.get(AggregateDocument, owner_id)
        if document is None:
            document = AggregateDocument(owner_id=owner_id)
            db.session.add(document)
        document.payload = aggregate.to_dict()
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Aggregate save failed owner=%s", owner_id)
            raise


def create_persistence(config) -> PersistenceAdapter:
    """Build the adapter named by ``config["PERSISTENCE_DRIVER"]``."""
    driver = str(config.get("PERSISTENCE_DRIVER", "memory")).lower()
    if driver == "memory":
        return MemoryPersistence(config.get("PERSISTENCE_SEED"))
    if driver == "sqlalchemy":
        return SqlAlchemyPersistence()
    raise RuntimeError(f"Unsupported persistence driver {driver!r}")
