from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any
from uuid import uuid4

from app.core.config import Settings


class OrganizationStore(ABC):
    @abstractmethod
    def create(self, *, name: str, organization_type: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, organization_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def search(self, *, query: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryOrganizationStore(OrganizationStore):
    def __init__(self) -> None:
        self._organizations: dict[str, dict[str, Any]] = {}

    def create(self, *, name: str, organization_type: str) -> dict[str, Any]:
        organization = _build_organization(name=name, organization_type=organization_type)
        self._organizations[organization["_id"]] = organization
        return dict(organization)

    def get_by_id(self, organization_id: str) -> dict[str, Any] | None:
        organization = self._organizations.get(organization_id)
        if not organization:
            return None
        return dict(organization)

    def search(self, *, query: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        needle = (query or "").casefold()
        items = [
            organization
            for organization in self._organizations.values()
            if needle in str(organization.get("name", "")).casefold()
        ]
        items.sort(key=lambda organization: str(organization.get("name", "")).casefold())
        return [dict(organization) for organization in items[:limit]]


class MongoOrganizationStore(OrganizationStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        self._uri = uri
        self._db_name = db_name
        self._collection_name = collection_name
        self._connect_timeout_ms = connect_timeout_ms
        self._collection: Any | None = None

    def _get_collection(self) -> Any:
        if self._collection is not None:
            return self._collection

        from pymongo import MongoClient

        client = MongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._connect_timeout_ms,
            connectTimeoutMS=self._connect_timeout_ms,
        )
        collection = client[self._db_name][self._collection_name]
        collection.create_index("name")
        self._collection = collection
        return collection

    def create(self, *, name: str, organization_type: str) -> dict[str, Any]:
        organization = _build_organization(name=name, organization_type=organization_type)
        self._get_collection().insert_one(organization)
        return organization

    def get_by_id(self, organization_id: str) -> dict[str, Any] | None:
        return self._get_collection().find_one({"_id": organization_id})

    def search(self, *, query: str | None = None, limit: int = 100) -> list[dict[str, Any]]:
        filters: dict[str, Any] = {}
        if query:
            filters["name"] = {"$regex": re.escape(query), "$options": "i"}
        cursor = (
            self._get_collection()
            .find(filters)
            .collation({"locale": "en", "strength": 2})
            .sort("name", 1)
            .limit(limit)
        )
        return list(cursor)


def _build_organization(*, name: str, organization_type: str) -> dict[str, Any]:
    now = datetime.now(UTC)
    return {
        "_id": str(uuid4()),
        "name": name.strip(),
        "type": organization_type.strip().lower(),
        "created_at": now,
        "updated_at": now,
    }


def create_organization_store(settings: Settings) -> OrganizationStore:
    return _create_organization_store_cached(
        store_name=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_collection_name=settings.mongodb_organizations_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_organization_store_cached(
    *,
    store_name: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_collection_name: str,
    mongodb_connect_timeout_ms: int,
) -> OrganizationStore:
    if store_name == "memory":
        return InMemoryOrganizationStore()

    if store_name == "mongodb":
        return MongoOrganizationStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_collection_name,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemoryOrganizationStore()


def clear_organization_store_cache() -> None:
    _create_organization_store_cached.cache_clear()
