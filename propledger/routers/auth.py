"""Authentication router"""
from fastapi import APIRouter, Depends, Header, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

from propledger.database import get_db
from propledger.services.auth import AuthService
from propledger.exceptions import AuthenticationError
from propledger.models.user import User, UserRole

router = APIRouter(prefix="/auth", tags=["Authentication"])

# auto_error=False so the legacy x-auth-token header can be tried as well
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# Request/Response Models
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=AuthService.create_access_token(user),
        user=UserResponse.model_validate(user)
    )


# Dependencies
async def get_current_user(
    bearer_token: Optional[str] = Depends(oauth2_scheme),
    x_auth_token: Optional[str] = Header(None, alias="x-auth-token"),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user from a bearer or x-auth-token JWT"""
    token = bearer_token or x_auth_token
    if not token:
        raise AuthenticationError(message="No token, authorization denied")

    payload = AuthService.decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AuthenticationError(message="Token is not valid")

    user = await AuthService(db).get_user_by_id(user_id)
    if not user:
        raise AuthenticationError(message="User no longer exists")

    return user


# Endpoints
@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: UserCreate,
    db: AsyncSession = Depends(get_db)
):
    """Register a new user and return an access token"""
    user = await AuthService(db).create_user(
        name=request.name,
        email=request.email,
        password=request.password,
        role=request.role
    )
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login and get access token"""
    user = await AuthService(db).authenticate_user(request.email, request.password)
    return _token_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return UserResponse.model_validate(current_user)
