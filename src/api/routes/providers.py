"""
Provider status endpoint.

Reports which analysis providers are configured and usable under the
caller's conditions, and which one the dashboard should pre-select.
"""

from fastapi import APIRouter, Query

from src.core.models import ProvidersResponse, RuntimeEnvironment
from src.services import orchestrator

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=ProvidersResponse)
async def list_providers(
    online: bool = Query(True),
    on_device_available: bool = Query(True),
):
    """List providers in fallback order with their availability."""
    env = RuntimeEnvironment(online=online, on_device_available=on_device_available)
    analyzer = orchestrator.get_orchestrator()
    return ProvidersResponse(
        providers=analyzer.describe(env),
        preferred=analyzer.choose_preferred(env),
    )
