from fastapi import APIRouter, HTTPException, status

from cyclewise.api.deps import CurrentUser, StorageDep
from cyclewise.models import User
from cyclewise.schemas.user import UserResponse, UserSyncRequest, UserUpdate

router = APIRouter()


@router.post("/sync", response_model=UserResponse)
async def sync_user(
    sync_in: UserSyncRequest,
    current_user: CurrentUser,
    storage: StorageDep,
) -> User:
    """Create or refresh the row for the authenticated identity. Safe to repeat."""
    email = sync_in.email or current_user.email
    if not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is required",
        )

    owner = await storage.get_user_by_email(email)
    if owner and owner.id != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already in use",
        )
    return await storage.upsert_user(
        current_user.user_id,
        email=email,
        name=sync_in.name or current_user.name,
    )


async def _get_own_user(current_user: CurrentUser, storage: StorageDep) -> User:
    user = await storage.get_user(current_user.user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: CurrentUser,
    storage: StorageDep,
) -> User:
    """Get current user information."""
    return await _get_own_user(current_user, storage)


@router.patch("/me", response_model=UserResponse)
async def update_current_user(
    user_update: UserUpdate,
    current_user: CurrentUser,
    storage: StorageDep,
) -> User:
    """Rename the current user; email and id are fixed."""
    user = await _get_own_user(current_user, storage)
    return await storage.update_user(user, user_update.model_dump(exclude_unset=True))
