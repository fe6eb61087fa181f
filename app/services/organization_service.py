from collections.abc import Mapping
from typing import Any

from fastapi import HTTPException, status

from app.core.config import Settings
from app.schemas.organization import OrganizationCreateRequest, OrganizationResponse
from app.schemas.zapier import OrganizationOption, OrganizationSearchResponse
from app.services.organization_store import OrganizationStore, create_organization_store


class OrganizationService:
    def __init__(self, settings: Settings, store: OrganizationStore | None = None) -> None:
        self.settings = settings
        self.store = store or create_organization_store(settings)

    def create_organization(self, payload: OrganizationCreateRequest) -> OrganizationResponse:
        name = payload.name.strip()
        if not name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Organization name is required.",
            )
        try:
            organization = self.store.create(name=name, organization_type=payload.type or "company")
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to persist organization.",
            ) from exc
        return _map_organization(organization)

    def get_organization(self, organization_id: str) -> OrganizationResponse:
        try:
            organization = self.store.get_by_id(organization_id)
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to query organization storage.",
            ) from exc

        if not organization:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Organization not found.",
            )
        return _map_organization(organization)

    def search_organizations(self, query: str | None = None) -> OrganizationSearchResponse:
        try:
            organizations = self.store.search(query=(query or "").strip() or None, limit=100)
        except Exception as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Unable to query organization storage.",
            ) from exc

        return OrganizationSearchResponse(
            items=[
                OrganizationOption(
                    id=str(organization.get("_id")),
                    label=f"{organization.get('name', '')} ({organization.get('type', '')})",
                    value=str(organization.get("_id")),
                    name=str(organization.get("name", "")),
                    type=str(organization.get("type", "")),
                )
                for organization in organizations
            ],
        )


def _map_organization(organization: Mapping[str, Any]) -> OrganizationResponse:
    return OrganizationResponse(
        id=str(organization.get("_id")),
        name=str(organization.get("name", "")),
        type=str(organization.get("type", "")),
        created_at=organization["created_at"],
        updated_at=organization["updated_at"],
    )
