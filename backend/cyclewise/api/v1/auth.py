from fastapi import APIRouter, HTTPException, status

from cyclewise.api.deps import SettingsDep, StorageDep
from cyclewise.schemas.user import AuthResponse, LoginRequest, SignupRequest, UserResponse
from cyclewise.services.auth import create_access_token, hash_password, verify_password

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    signup_in: SignupRequest,
    storage: StorageDep,
    settings: SettingsDep,
) -> AuthResponse:
    """Create a local account and return a bearer token."""
    if await storage.get_user_by_email(signup_in.email):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    user = await storage.create_user(
        email=signup_in.email,
        name=signup_in.name,
        password_hash=hash_password(signup_in.password),
    )
    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=create_access_token(settings, user.id, user.email),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    login_in: LoginRequest,
    storage: StorageDep,
    settings: SettingsDep,
) -> AuthResponse:
    user = await storage.get_user_by_email(login_in.email)
    if not user or not verify_password(login_in.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    return AuthResponse(
        user=UserResponse.model_validate(user),
        access_token=create_access_token(settings, user.id, user.email),
    )
