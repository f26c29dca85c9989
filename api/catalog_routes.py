"""Job and skill catalog routes plus resume text upload."""
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from api.deps import current_user, get_services
from api.schemas import ResumeResp
from services.container import AppServices
from storage.catalog import JobRecord, SkillRecord

router = APIRouter(prefix="/api", tags=["catalog"])

MAX_RESUME_BYTES = 10 * 1024 * 1024


@router.get("/jobs", response_model=List[JobRecord])
def list_jobs(services: AppServices = Depends(get_services)) -> List[JobRecord]:
    return services.catalog.list_jobs()


@router.get("/skills", response_model=List[SkillRecord])
def list_skills(services: AppServices = Depends(get_services)) -> List[SkillRecord]:
    return services.catalog.list_skills()


@router.post("/resume/upload", response_model=ResumeResp, dependencies=[Depends(current_user)])
def upload_resume(resume: UploadFile = File(...)) -> ResumeResp:
    content_type = (resume.content_type or "").split(";", 1)[0].strip().lower()
    if content_type != "text/plain":
        raise HTTPException(status_code=415, detail="Only plain-text resumes are accepted.")
    data = resume.file.read(MAX_RESUME_BYTES + 1)
    if len(data) > MAX_RESUME_BYTES:
        raise HTTPException(status_code=413, detail="Resume exceeds the 10MB limit.")
    text = data.decode("utf-8", errors="replace").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Uploaded resume is empty.")
    return ResumeResp(file_name=resume.filename or "resume.txt", resume_text=text)
