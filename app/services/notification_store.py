from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import lru_cache
from typing import Any
from uuid import uuid4

from app.core.config import Settings


class NotificationStore(ABC):
    @abstractmethod
    def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def list_recent(
        self,
        *,
        limit: int,
        user_id: str | None = None,
        organization_id: str | None = None,
        notification_type: str | None = None,
        alert_type: str | None = None,
        unread_only: bool = False,
    ) -> list[dict[str, Any]]:
        raise NotImplementedError


class InMemoryNotificationStore(NotificationStore):
    def __init__(self) -> None:
        self._records: list[dict[str, Any]] = []

    def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        stored_record = dict(record)
        stored_record["_id"] = str(uuid4())
        stored_record.setdefault("created_at", datetime.now(UTC))
        self._records.append(stored_record)
        return dict(stored_record)

    def list_recent(
        self,
        *,
        limit: int,
        user_id: str | None = None,
        organization_id: str | None = None,
        notification_type: str | None = None,
        alert_type: str | None = None,
        unread_only: bool = False,
    ) -> list[dict[str, Any]]:
        items = [
            record
            for record in self._records
            if (user_id is None or record.get("user_id") == user_id)
            and (organization_id is None or record.get("organization_id") == organization_id)
            and (notification_type is None or record.get("type") == notification_type)
            and (alert_type is None or (record.get("data") or {}).get("alert_type") == alert_type)
            and (not unread_only or not record.get("is_read", False))
        ]
        return [dict(record) for record in reversed(items[-limit:])]


class MongoNotificationStore(NotificationStore):
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
        collection.create_index([("user_id", 1), ("created_at", self._desc)])
        collection.create_index([("organization_id", 1)])
        collection.create_index([("type", 1), ("is_read", 1), ("created_at", self._desc)])
        self._collection = collection
        return collection

    def create(self, record: Mapping[str, Any]) -> dict[str, Any]:
        payload = dict(record)
        payload["_id"] = str(uuid4())
        payload.setdefault("created_at", datetime.now(UTC))
        self._get_collection().insert_one(payload)
        return payload

    def list_recent(
        self,
        *,
        limit: int,
        user_id: str | None = None,
        organization_id: str | None = None,
        notification_type: str | None = None,
        alert_type: str | None = None,
        unread_only: bool = False,
    ) -> list[dict[str, Any]]:
        query: dict[str, Any] = {}
        if user_id:
            query["user_id"] = user_id
        if organization_id:
            query["organization_id"] = organization_id
        if notification_type:
            query["type"] = notification_type
        if alert_type:
            query["data.alert_type"] = alert_type
        if unread_only:
            query["is_read"] = False
        cursor = self._get_collection().find(query).sort("created_at", self._desc).limit(limit)
        return list(cursor)


def create_notification_store(settings: Settings) -> NotificationStore:
    return _create_notification_store_cached(
        store_name=settings.data_store,
        mongodb_uri=settings.mongodb_uri,
        mongodb_db_name=settings.mongodb_db_name,
        mongodb_collection_name=settings.mongodb_notifications_collection,
        mongodb_connect_timeout_ms=settings.mongodb_connect_timeout_ms,
    )


@lru_cache
def _create_notification_store_cached(
    *,
    store_name: str,
    mongodb_uri: str,
    mongodb_db_name: str,
    mongodb_collection_name: str,
    mongodb_connect_timeout_ms: int,
) -> NotificationStore:
    if store_name == "memory":
        return InMemoryNotificationStore()

    if store_name == "mongodb":
        return MongoNotificationStore(
            uri=mongodb_uri,
            db_name=mongodb_db_name,
            collection_name=mongodb_collection_name,
            connect_timeout_ms=mongodb_connect_timeout_ms,
        )

    return InMemoryNotificationStore()


def clear_notification_store_cache() -> None:
    _create_notification_store_cached.cache_clear()


def build_notification_record(
    *,
    organization_id: str | None,
    user_id: str | None,
    notification_type: str,
    title: str,
    message: str,
    priority: str = "normal",
    data: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    return {
        "organization_id": organization_id,
        "user_id": user_id,
        "type": notification_type,
        "title": title,
        "message": message,
        "priority": priority,
        "data": dict(data) if data else {},
        "is_read": False,
        "is_sent": False,
        "created_at": datetime.now(UTC),
    }
