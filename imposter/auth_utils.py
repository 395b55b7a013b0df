import time
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from .constants import MIN_PASSWORD_LENGTH, MIN_USERNAME_LENGTH
from .errors import DuplicateUsername, InvalidCredentials, InvalidToken, WeakCredentials
from .models import User
from .schemas import UserIdentity

# -----------------------------
# Password hashing helpers
# -----------------------------

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    """Return a secure bcrypt hash of *password*."""
    return pwd_context.hash(password)

def verify_password(password: str, hashed: str) -> bool:
    """Verify *password* against *hashed* bcrypt digest."""
    return pwd_context.verify(password, hashed)

# -----------------------------
# Access tokens
# -----------------------------

TOKEN_ALGORITHM = "HS256"

def create_access_token(user_id: str, username: str, secret: str, ttl_sec: int) -> str:
    """Return a signed token carrying the user identity and an expiry."""
    now = int(time.time())
    payload = {"sub": user_id, "username": username, "iat": now, "exp": now + ttl_sec}
    return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)

def decode_access_token(token: str, secret: str) -> UserIdentity:
    """Verify *token* offline and return the identity it encodes.

    Raises
    ------
    InvalidToken
        If the token is malformed, tampered with or expired.
    """
    if not token or not isinstance(token, str):
        raise InvalidToken("Missing token")
    try:
        payload = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise InvalidToken("Token expired") from exc
    except jwt.PyJWTError as exc:
        raise InvalidToken("Invalid token") from exc
    user_id = payload.get("sub")
    username = payload.get("username")
    if not user_id or not username:
        raise InvalidToken("Invalid token")
    return UserIdentity(user_id=str(user_id), username=str(username))

# -----------------------------
# Account operations
# -----------------------------

async def register_user(username: str, password: str) -> User:
    username = (username or "").strip()
    if len(username) < MIN_USERNAME_LENGTH:
        raise WeakCredentials(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise WeakCredentials(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if await User.filter(username=username).first():
        raise DuplicateUsername("Username already taken")
    return await User.create(username=username, password_hash=hash_password(password))

async def login_user(username: str, password: str) -> User:
    user: Optional[User] = await User.filter(username=(username or "").strip()).first()
    if not user or not verify_password(password or "", user.password_hash):
        raise InvalidCredentials("Invalid credentials")
    return user

# -----------------------------
# FastAPI dependency helpers
# -----------------------------

security = HTTPBearer(auto_error=False)

async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserIdentity:
    """Resolve the bearer token on an HTTP request.

    Raises
    ------
    HTTPException
        If the token is missing or invalid.
    """
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return decode_access_token(credentials.credentials, request.app.state.config.JWT_SECRET)
    except InvalidToken as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

__all__ = [
    "pwd_context",
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_access_token",
    "register_user",
    "login_user",
    "security",
    "get_current_identity",
]
