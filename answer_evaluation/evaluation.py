from __future__ import annotations

import re
from textwrap import dedent
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from config import LlmRoute, settings
from interview_session.errors import EvaluationFailure
from interview_session.models import CATEGORY_KEYS
from llm_gateway import LlmGatewayError, call

_SUMMARY = re.compile(r"Summary:\s*(.*?)(?:\n|$)", re.IGNORECASE)
_STRENGTHS = re.compile(r"Strengths:\s*(-.*?)(?:\nAreas for Improvement:|\nScore:|$)", re.IGNORECASE | re.DOTALL)
_IMPROVEMENTS = re.compile(r"Areas for Improvement:\s*(-.*?)(?:\nScore:|$)", re.IGNORECASE | re.DOTALL)
_SCORE = re.compile(r"^\s*Score:\s*(\d+(?:\.\d+)?)", re.IGNORECASE | re.MULTILINE)
_CATEGORY_LABELS = {
    "technical": re.compile(r"Technical Relevance:\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    "behavioral": re.compile(r"Behavioral Aspects:\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
    "soft_skills": re.compile(r"Communication Clarity:\s*(\d+(?:\.\d+)?)", re.IGNORECASE),
}
NO_SUMMARY = "No summary feedback generated."


def _clamp(value: object) -> float:  # Coerce a 0..10 score, rejecting non-numeric input
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"score must be a number, got {type(value).__name__}")
    return max(0.0, min(10.0, float(value)))


class AnswerFeedback(BaseModel):  # Evaluator verdict for one answer
    summary: str = NO_SUMMARY
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    score: float = 0.0
    category_scores: Dict[str, float] = Field(default_factory=dict)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: object) -> float:
        return _clamp(value)

    @field_validator("category_scores", mode="before")
    @classmethod
    def _fill_categories(cls, value: object) -> Dict[str, float]:
        raw = value if isinstance(value, dict) else {}
        return {key: _clamp(raw.get(key) or 0) for key in CATEGORY_KEYS}

    @classmethod
    def from_raw_content(cls, content: str) -> "AnswerFeedback":  # Parse the labelled plain-text format
        summary = _SUMMARY.search(content)
        score = _SCORE.search(content)
        if summary is None and score is None:
            raise ValueError("reply has neither a Summary nor a Score line")
        return cls(
            summary=summary.group(1).strip() if summary and summary.group(1).strip() else NO_SUMMARY,
            strengths=_bullets(_STRENGTHS.search(content)),
            areas_for_improvement=_bullets(_IMPROVEMENTS.search(content)),
            score=float(score.group(1)) if score else 0.0,
            category_scores={key: _first_number(pattern, content) for key, pattern in _CATEGORY_LABELS.items()},
        )


def _first_number(pattern: re.Pattern[str], content: str) -> float:
    match = pattern.search(content)
    return float(match.group(1)) if match else 0.0


def _bullets(match: re.Match[str] | None) -> List[str]:
    if match is None:
        return []
    lines = [line.strip() for line in match.group(1).splitlines()]
    return [line.lstrip("-").strip() for line in lines if line.startswith("-") and line.lstrip("-").strip()]


class EvaluationRequest(BaseModel):  # Question and answer with interview context
    question: str
    answer: str
    job_titles: List[str] = Field(default_factory=list)
    skill_names: List[str] = Field(default_factory=list)
    resume_text: str = ""


def evaluate_answer(request: EvaluationRequest, *, route: LlmRoute) -> AnswerFeedback:  # Call LLM evaluator
    task = _build_task(request)
    try:
        return call(task, AnswerFeedback, cfg=route)
    except LlmGatewayError as exc:
        raise EvaluationFailure(f"answer evaluation failed: {exc}") from exc


def _build_task(request: EvaluationRequest) -> str:  # Compose evaluation prompt
    jobs = ", ".join(request.job_titles) or "(unspecified)"
    skills = ", ".join(request.skill_names) or "(unspecified)"
    resume = request.resume_text.strip()[: settings.RESUME_EVAL_CHARS]
    resume_line = f'Their resume snippet: "{resume}"' if resume else "No resume was provided."
    return dedent(
        f"""
        You are an AI interview grader. The candidate applied for role(s): "{jobs}",
        and was assessed on skills: "{skills}".
        """
    ).strip() + "\n" + resume_line + "\n\n" + dedent(
        f"""
        Evaluate the following answer to the question:
        Question: "{request.question}"
        Candidate's Answer: "{request.answer}"

        Provide a concise overall feedback summary (2-3 sentences), 2-3 specific strengths and
        2-3 specific areas for improvement. Give a score from 1 (poor) to 10 (excellent) for the answer,
        plus separate 1-10 scores for technical relevance, behavioral aspects and communication clarity.
        Use these fields:
        - summary: the feedback summary.
        - strengths: list of strengths.
        - areas_for_improvement: list of improvements.
        - score: numeric score for this answer.
        - category_scores: object with keys {", ".join(CATEGORY_KEYS)}.
        """
    ).strip()
