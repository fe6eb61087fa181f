from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import uuid4

from app.core.config import Settings

EXTERNAL_ANALYSIS_REPORT_TYPE = "external_analysis"


class AnalyticsStore(ABC):
    @abstractmethod
    def create(self, record: Mapping[str, Any]) -> str:
        raise NotImplementedError

    @abstractmethod
    def list_by_sales_call_id(self, sales_call_id: str, limit: int = 50) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryAnalyticsStore(AnalyticsStore):
    def __init__(self) -> None:
        self._records: list[dict[str, Any]] = []

    def create(self, record: Mapping[str, Any]) -> str:
        stored_record = dict(record)
        record_id = str(uuid4())
        stored_record["_id"] = record_id
        stored_record.setdefault("created_at", datetime.now(UTC))
        self._records.append(stored_record)
        return record_id

    def list_by_sales_call_id(self, sales_call_id: str, limit: int = 50) -> list[dict[str, Any]]:
        items = [record for record in self._records if record.get("sales_call_id") == sales_call_id]
        return [dict(record) for record in reversed(items[-limit:])]


class MongoAnalyticsStore(AnalyticsStore):
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
        if self._collection is not None:
            return self._collection

        from pymongo import MongoClient

        client = MongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._connect_timeout_ms,
            connectTimeoutMS=self._connect_timeout_ms,
        )
        collection = client[self._db_name][self._collection_name]
        collection.create_index([("organization_id", 1), ("generated_at", self._desc)])
        collection.create_index([("sales_call_id", 1), ("generated_at", self._desc)])
        collection.create_index([("report_type", 1)])
        self._collection = collection
        return collection

    def create(self, record: Mapping[str, Any]) -> str:
        payload = dict(record)
        payload["_id"] = str(uuid4())
        payload.setdefault("created_at", datetime.now(UTC))
        insert_result = self._get_collection().insert_one(payload)
        return str(insert_result.inserted_id)

    def list_by_sales_call_id(self, sales_call_id: str, limit: int = 50) -> list[dict[str, Any]]:
        cursor = (
            self._get_collection()
            .find({"sales_call_id": sales_call_id})
            .sort("generated_at", self._desc)
            .limit(limit)
        )
        return list(cursor)


def create_analytics_store(settings: Settings) -> AnalyticsStore:
    return _create_analytics_store_cached(
        store_name=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_collection_name=settings.mongodb_analytics_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_analytics_store_cached(
    *,
    store_name: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_collection_name: str,
    mongodb_connect_timeout_ms: int,
) -> AnalyticsStore:
    if store_name == "memory":
        return InMemoryAnalyticsStore()

    if store_name == "mongodb":
        return MongoAnalyticsStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_collection_name,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemoryAnalyticsStore()


def clear_analytics_store_cache() -> None:
    _create_analytics_store_cached.cache_clear()


def build_analytics_record(
    *,
    organization_id: str | None,
    user_id: str | None,
    sales_call_id: str | None,
    raw_payload: Mapping[str, Any],
    retention_days: int = 30,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    generated = generated_at or datetime.now(UTC)
    return {
        "organization_id": organization_id,
        "user_id": user_id,
        "sales_call_id": sales_call_id,
        "report_type": EXTERNAL_ANALYSIS_REPORT_TYPE,
        "report_name": f"External Analysis - {sales_call_id or 'General'}",
        "report_data": {
            "raw_payload": dict(raw_payload),
            "sales_call_id": sales_call_id,
        },
        "filters": {},
        "date_range": {"start": generated, "end": generated},
        "generated_at": generated,
        "expires_at": generated + timedelta(days=retention_days),
        "is_scheduled": False,
    }
