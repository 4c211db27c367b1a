"""SQLAlchemy adapter package for triplink."""

from __future__ import annotations

from .catalog import SqlAlchemyEntityAccessor, build_entity_catalog, entity_accessor
from .mappings import (
    CLASS_BY_KIND,
    TABLE_BY_KIND,
    mapper_registry,
    start_mappers,
)
from .repositories import SqlAlchemyEntityLinkRepository, SqlAlchemyTripRepository
from .unit_of_work import (
    SqlAlchemyLinkUnitOfWork,
    SqlAlchemyTripUnitOfWork,
    shutdown,
    startup,
)

__all__ = [
    "CLASS_BY_KIND",
    "TABLE_BY_KIND",
    "SqlAlchemyEntityAccessor",
    "SqlAlchemyEntityLinkRepository",
    "SqlAlchemyLinkUnitOfWork",
    "SqlAlchemyTripRepository",
    "SqlAlchemyTripUnitOfWork",
    "build_entity_catalog",
    "entity_accessor",
    "mapper_registry",
    "shutdown",
    "startup",
]
