"""Domain port definitions for adapters."""

from __future__ import annotations

from .authorization import Authorizer, TripAccess
from .catalog import EntityAccessor
from .persistence import EntityLinkRepository, Repository, TripRepository
from .unit_of_work import (
    LinkRepositories,
    LinkUnitOfWork,
    RepositoryCollection,
    TripRepositories,
    TripUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "Authorizer",
    "EntityAccessor",
    "EntityLinkRepository",
    "LinkRepositories",
    "LinkUnitOfWork",
    "Repository",
    "RepositoryCollection",
    "TripAccess",
    "TripRepositories",
    "TripRepository",
    "TripUnitOfWork",
    "UnitOfWork",
]
