"""Shared FastAPI dependencies for the persistence collaborators."""

from projectintel.features.master_data.registry import SqlMasterDataRegistry
from projectintel.features.projects.repository import SqlProjectRepository


def get_registry() -> SqlMasterDataRegistry:
    return SqlMasterDataRegistry()


def get_project_repository() -> SqlProjectRepository:
    return SqlProjectRepository()
