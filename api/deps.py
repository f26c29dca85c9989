"""FastAPI dependencies shared by the routers."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from interview_session.controller import SessionController
from interview_session.errors import Unauthorized
from services.container import AppServices
from storage.users import UserRecord

_bearer = HTTPBearer(auto_error=False)


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def get_controller(services: AppServices = Depends(get_services)) -> SessionController:
    return services.controller


def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    services: AppServices = Depends(get_services),
) -> UserRecord:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("not authorized to access this route (no token)")
    return services.auth.authenticate(credentials.credentials)
