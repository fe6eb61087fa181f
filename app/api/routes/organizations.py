from fastapi import APIRouter, status

from app.core.config import get_settings
from app.schemas.organization import OrganizationCreateRequest, OrganizationResponse
from app.services.organization_service import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_organization(payload: OrganizationCreateRequest) -> OrganizationResponse:
    service = OrganizationService(get_settings())
    return service.create_organization(payload)


@router.get(
    "/{organization_id}",
    response_model=OrganizationResponse,
)
def get_organization(organization_id: str) -> OrganizationResponse:
    service = OrganizationService(get_settings())
    return service.get_organization(organization_id)
