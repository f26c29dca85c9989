"""Client-side helpers for running a timed interview."""
from .countdown import QuestionCountdown
from .runner import AnswerDraft, HttpInterviewTransport, InterviewRunner, InterviewTransport

__all__ = ["AnswerDraft", "HttpInterviewTransport", "InterviewRunner", "InterviewTransport", "QuestionCountdown"]
