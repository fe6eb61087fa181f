from fastapi import APIRouter

from app.api.routes.health import router as health_router
from app.api.routes.organizations import router as organizations_router
from app.api.routes.sales_calls import router as sales_calls_router
from app.api.routes.webhooks import router as webhooks_router
from app.api.routes.zapier import router as zapier_router

api_router = APIRouter()
v1_router = APIRouter(prefix="/v1")

api_router.include_router(health_router)

# Unversioned routes used by existing Zaps.
api_router.include_router(organizations_router)
api_router.include_router(sales_calls_router)
api_router.include_router(webhooks_router)
api_router.include_router(zapier_router)

# Versioned routes for long-term API evolution.
v1_router.include_router(organizations_router)
v1_router.include_router(sales_calls_router)
v1_router.include_router(webhooks_router)
v1_router.include_router(zapier_router)
api_router.include_router(v1_router)
