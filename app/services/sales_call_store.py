from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any
from uuid import uuid4

from app.core.config import Settings


class SalesCallStore(ABC):
    @abstractmethod
    def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def get_by_id(self, sales_call_id: str) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def update_by_id(
        self,
        sales_call_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def list_recent(
        self,
        *,
        limit: int,
        organization_id: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemorySalesCallStore(SalesCallStore):
    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        stored_record = dict(record)
        sales_call_id = str(stored_record.get("_id") or uuid4())
        if sales_call_id in self._records:
            raise ValueError("sales_call_already_exists")
        now = datetime.now(UTC)
        stored_record["_id"] = sales_call_id
        stored_record.setdefault("created_at", now)
        stored_record.setdefault("updated_at", now)
        self._records[sales_call_id] = stored_record
        return dict(stored_record)

    def get_by_id(self, sales_call_id: str) -> dict[str, Any] | None:
        record = self._records.get(sales_call_id)
        if not record:
            return None
        return dict(record)

    def update_by_id(
        self,
        sales_call_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        record = self._records.get(sales_call_id)
        if not record:
            return None
        record.update(dict(updates))
        record["updated_at"] = datetime.now(UTC)
        return dict(record)

    def list_recent(
        self,
        *,
        limit: int,
        organization_id: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        items = [
            record
            for record in self._records.values()
            if (organization_id is None or record.get("organization_id") == organization_id)
            and (status is None or record.get("status") == status)
        ]
        items.sort(key=_sort_key, reverse=True)
        return [dict(record) for record in items[:limit]]


class MongoSalesCallStore(SalesCallStore):
    def __init__(
        self,
        *,
        uri: str,
        db_name: str,
        collection_name: str,
        connect_timeout_ms: int = 2000,
    ) -> None:
        from pymongo import DESCENDING

        self._desc = DESCENDING
        self._uri = uri
        self._db_name = db_name
        self._collection_name = collection_name
        self._connect_timeout_ms = connect_timeout_ms
        self._collection: Any | None = None

    def _get_collection(self) -> Any:
        # No network I/O happens before the first operation.
        if self._collection is not None:
            return self._collection

        from pymongo import MongoClient

        client = MongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._connect_timeout_ms,
            connectTimeoutMS=self._connect_timeout_ms,
        )
        collection = client[self._db_name][self._collection_name]
        collection.create_index([("organization_id", 1), ("call_start_time", self._desc)])
        collection.create_index([("status", 1)])
        collection.create_index([("customer_email", 1)])
        collection.create_index([("external_meeting_id", 1)])
        self._collection = collection
        return collection

    def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        now = datetime.now(UTC)
        payload = dict(record)
        payload["_id"] = str(payload.get("_id") or uuid4())
        payload.setdefault("created_at", now)
        payload.setdefault("updated_at", now)
        self._get_collection().insert_one(payload)
        return payload

    def get_by_id(self, sales_call_id: str) -> dict[str, Any] | None:
        return self._get_collection().find_one({"_id": sales_call_id})

    def update_by_id(
        self,
        sales_call_id: str,
        updates: Mapping[str, Any],
    ) -> dict[str, Any] | None:
        from pymongo import ReturnDocument

        payload = dict(updates)
        payload["updated_at"] = datetime.now(UTC)
        return self._get_collection().find_one_and_update(
            {"_id": sales_call_id},
            {"$set": payload},
            return_document=ReturnDocument.AFTER,
        )

    def list_recent(
        self,
        *,
        limit: int,
        organization_id: str | None = None,
        status: str | None = None,
    ) -> list[dict[str, Any]]:
        query: dict[str, Any] = {}
        if organization_id:
            query["organization_id"] = organization_id
        if status:
            query["status"] = status
        cursor = (
            self._get_collection()
            .find(query)
            .sort([("call_start_time", self._desc), ("created_at", self._desc)])
            .limit(limit)
        )
        return list(cursor)


def _sort_key(record: Mapping[str, Any]) -> tuple[datetime, datetime]:
    fallback = datetime.min.replace(tzinfo=UTC)
    start_time = record.get("call_start_time")
    created_at = record.get("created_at")
    return (
        start_time if isinstance(start_time, datetime) else fallback,
        created_at if isinstance(created_at, datetime) else fallback,
    )


def create_sales_call_store(settings: Settings) -> SalesCallStore:
    return _create_sales_call_store_cached(
        store_name=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_collection_name=settings.mongodb_sales_calls_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_sales_call_store_cached(
    *,
    store_name: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_collection_name: str,
    mongodb_connect_timeout_ms: int,
) -> SalesCallStore:
    if store_name == "memory":
        return InMemorySalesCallStore()

    if store_name == "mongodb":
        return MongoSalesCallStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_collection_name,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemorySalesCallStore()


def clear_sales_call_store_cache() -> None:
    _create_sales_call_store_cached.cache_clear()
