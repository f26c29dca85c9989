from __future__ import annotations  # Interview question generation module

import re
from textwrap import dedent
from typing import List

from pydantic import BaseModel, Field, field_validator

from config import LlmRoute, settings
from interview_session.errors import GenerationFailure
from llm_gateway import LlmGatewayError, call

_NUMBERED = re.compile(r"^\s*\d+\.\s*")
MIN_QUESTION_CHARS = 10


class QuestionRequest(BaseModel):  # Context the prompt is built from
    job_titles: List[str] = Field(min_length=1)
    skill_names: List[str] = Field(min_length=1)
    resume_text: str = ""


class QuestionList(BaseModel):  # Parsed generator reply
    questions: List[str] = Field(min_length=1)

    @field_validator("questions")
    @classmethod
    def _keep_well_formed(cls, value: List[str]) -> List[str]:
        kept = [item for item in (_clean(entry) for entry in value) if _is_question(item)]
        if not kept:
            raise ValueError("no well-formed questions in reply")
        return kept

    @classmethod
    def from_raw_content(cls, content: str) -> "QuestionList":  # Parse a numbered-list reply
        lines = [line for line in content.splitlines() if _NUMBERED.match(line)]
        return cls(questions=[_NUMBERED.sub("", line).strip() for line in lines])


def _clean(entry: str) -> str:
    return _NUMBERED.sub("", str(entry)).strip().strip('"').strip()


def _is_question(text: str) -> bool:
    return len(text) > MIN_QUESTION_CHARS and text.endswith("?")


def parse_questions(content: str, limit: int) -> List[str]:
    """Extract well-formed questions from a raw reply; empty when none survive filtering."""

    try:
        return QuestionList.from_raw_content(content).questions[:limit]
    except ValueError:
        return []


def generate_questions(request: QuestionRequest, *, route: LlmRoute) -> List[str]:  # Ask the model for questions
    task = _build_task(request)
    try:
        result = call(task, QuestionList, cfg=route)
    except LlmGatewayError as exc:
        raise GenerationFailure(f"question generation failed: {exc}") from exc
    questions = result.questions[: settings.MAX_QUESTIONS]
    if not questions:
        raise GenerationFailure("question generation returned no usable questions")
    return questions


def _build_task(request: QuestionRequest) -> str:  # Build task prompt for the model
    jobs = ", ".join(request.job_titles)
    skills = ", ".join(request.skill_names)
    resume = request.resume_text.strip()[: settings.RESUME_PROMPT_CHARS]
    resume_line = f'Their resume (excerpt): "{resume}"' if resume else "No resume was provided."
    return dedent(
        f"""
        You are an AI mock interviewer. Generate a set of 5-7 interview questions for a candidate.
        The candidate is applying for the following role(s): "{jobs}".
        They should be assessed on these key skills: "{skills}".
        """
    ).strip() + "\n" + resume_line + "\n" + dedent(
        """
        Cover a mix of technical, behavioral, and situational aspects relevant to the roles and skills,
        drawing on resume experience where it is relevant.
        Format the output as a numbered list with one question per line, each ending with a question mark.
        """
    ).strip()
