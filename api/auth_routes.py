"""Account registration and login routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import current_user, get_services
from api.schemas import AuthResp, LoginReq, RegisterReq
from services.container import AppServices
from storage.users import UserRecord

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResp, status_code=201)
def register(payload: RegisterReq, services: AppServices = Depends(get_services)) -> AuthResp:
    user, token = services.auth.register(payload.username, payload.email, payload.password)
    return AuthResp(token=token, user=user)


@router.post("/login", response_model=AuthResp)
def login(payload: LoginReq, services: AppServices = Depends(get_services)) -> AuthResp:
    user, token = services.auth.login(payload.email, payload.password)
    return AuthResp(token=token, user=user)


@router.get("/me", response_model=UserRecord)
def me(user: UserRecord = Depends(current_user)) -> UserRecord:
    return user
