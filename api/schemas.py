"""Pydantic schemas for the interview HTTP API."""
from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from storage.users import UserRecord


class StartReq(BaseModel):
    selected_jobs: List[str] = Field(default_factory=list)
    selected_skills: List[str] = Field(default_factory=list)
    resume_text: str = ""


class AdvanceReq(BaseModel):
    direction: Literal["next", "previous"] = "next"


class RegisterReq(BaseModel):
    username: str
    email: str
    password: str


class LoginReq(BaseModel):
    email: str
    password: str


class AuthResp(BaseModel):
    token: str
    user: UserRecord


class ResumeResp(BaseModel):
    file_name: str
    resume_text: str
