from fastapi import APIRouter, HTTPException, status

from cyclewise.api.deps import SettingsDep
from cyclewise.config import ConfigurationError
from cyclewise.schemas.user import SupabaseConfigResponse

router = APIRouter()


@router.get("/supabase", response_model=SupabaseConfigResponse)
async def get_supabase_config(settings: SettingsDep) -> SupabaseConfigResponse:
    """Public identity-provider settings for the browser client. Never includes secrets."""
    try:
        settings.require("supabase_url", "supabase_anon_key")
    except ConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        )
    return SupabaseConfigResponse(url=settings.supabase_url, anon_key=settings.supabase_anon_key)
