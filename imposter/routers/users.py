from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..auth_utils import create_access_token, get_current_identity, login_user, register_user
from ..errors import DuplicateUsername, InvalidCredentials, WeakCredentials
from ..models import User
from ..schemas import AuthResponse, LoginRequest, RegisterRequest, StatsResponse, UserIdentity
from ..words import WORD_LIBRARIES

router = APIRouter(prefix="/api", tags=["users"])


def _auth_response(request: Request, user: User) -> AuthResponse:
    config = request.app.state.config
    identity = UserIdentity(user_id=str(user.id), username=user.username)
    token = create_access_token(identity.user_id, identity.username, config.JWT_SECRET, config.TOKEN_TTL_SEC)
    return AuthResponse(token=token, user=identity)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(req: RegisterRequest, request: Request):
    try:
        user = await register_user(req.username, req.password)
    except (WeakCredentials, DuplicateUsername) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _auth_response(request, user)


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, request: Request):
    try:
        user = await login_user(req.username, req.password)
    except InvalidCredentials as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    return _auth_response(request, user)


@router.get("/me", response_model=UserIdentity)
async def me(identity: UserIdentity = Depends(get_current_identity)):
    return identity


@router.get("/stats/{user_id}", response_model=StatsResponse)
async def get_stats(user_id: uuid.UUID, request: Request):
    return await request.app.state.game.stats_store.read_stats(str(user_id))


@router.get("/libraries")
async def get_libraries():
    return WORD_LIBRARIES
