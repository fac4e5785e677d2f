"""Authentication service"""
from datetime import datetime, timedelta
from typing import Optional
from jose import jwt, JWTError
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from propledger.config import settings
from propledger.models.user import User, UserRole
from propledger.exceptions import AuthenticationError, ValidationError

logger = logging.getLogger(__name__)


# Password hashing context - argon2, no 72-byte input limit unlike bcrypt
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(password)


def validate_password_strength(password: str) -> None:
    """Validate password meets requirements"""
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            message=f"Please enter a password with {settings.PASSWORD_MIN_LENGTH} or more characters",
            details={"field": "password"}
        )


class AuthService:
    """Authentication service for user management"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def authenticate_user(self, email: str, password: str) -> User:
        """Authenticate a user by email and password"""
        user = await self.get_user_by_email(email)

        # Same message for unknown email and wrong password
        if not user or not verify_password(password, user.password_hash):
            raise ValidationError(message="Invalid credentials")

        return user

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole,
    ) -> User:
        """Register a new user with a fixed role"""
        if not name or not name.strip():
            raise ValidationError(message="Name is required", details={"field": "name"})

        validate_password_strength(password)

        if await self.get_user_by_email(email):
            raise ValidationError(message="User already exists")

        user = User(
            name=name.strip(),
            email=email.lower(),
            password_hash=get_password_hash(password),
            role=UserRole(role),
        )

        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id} with role {user.role.value}")
        return user

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token carrying the user id and role"""
        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode = {
            "sub": str(user.id),
            "role": UserRole(user.role).value,
            "exp": expire,
            "type": "access",
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """Decode and validate JWT token"""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise AuthenticationError(message="Token is not valid")

        if payload.get("type") != "access":
            raise AuthenticationError(message="Token is not valid")
        return payload
