"""FastAPI routes for the interview session lifecycle."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from api.deps import current_user, get_controller
from api.schemas import AdvanceReq, StartReq
from interview_session.controller import MediaUpload, SessionController
from interview_session.errors import InvalidState
from interview_session.models import EvaluationOutcome, Question, SessionSummary, SessionView
from session_reports import render_session_pdf
from storage.users import UserRecord

router = APIRouter(prefix="/api/interview", tags=["interview"])


@router.post("/start", response_model=SessionView, status_code=201)
def start_interview(
    payload: StartReq,
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> SessionView:
    return controller.create_session(user.id, payload.selected_jobs, payload.selected_skills, payload.resume_text)


@router.get("", response_model=List[SessionSummary])
def list_interviews(
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> List[SessionSummary]:
    return controller.list_sessions(user.id)


@router.get("/{interview_id}", response_model=SessionView)
def fetch_interview(
    interview_id: str,
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> SessionView:
    return controller.get_session(interview_id, user.id)


@router.put("/{interview_id}/answer", response_model=Question)
def save_answer(
    interview_id: str,
    question_id: str = Form(...),
    user_answer: str = Form(""),
    media_file: Optional[UploadFile] = File(None),
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> Question:
    media = None
    if media_file is not None:
        media = MediaUpload(
            data=media_file.file.read(),
            content_type=media_file.content_type or "application/octet-stream",
        )
    return controller.save_answer(interview_id, question_id, user.id, user_answer, media)


@router.post("/{interview_id}/advance", response_model=SessionView)
def advance_question(
    interview_id: str,
    payload: AdvanceReq,
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> SessionView:
    return controller.advance_question(interview_id, user.id, payload.direction)


@router.put("/{interview_id}/complete-and-evaluate", response_model=EvaluationOutcome)
def complete_and_evaluate(
    interview_id: str,
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> EvaluationOutcome:
    return controller.complete_and_evaluate(interview_id, user.id)


@router.get("/{interview_id}/report.pdf")
def fetch_report_pdf(
    interview_id: str,
    user: UserRecord = Depends(current_user),
    controller: SessionController = Depends(get_controller),
) -> Response:
    session = controller.get_session(interview_id, user.id)
    if session.status != "evaluated":
        raise InvalidState("the feedback report is available once the interview is evaluated")
    payload = render_session_pdf(session)
    headers = {"Content-Disposition": f'attachment; filename="interview-{interview_id}.pdf"'}
    return Response(content=payload, media_type="application/pdf", headers=headers)
