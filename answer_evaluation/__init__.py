from .evaluation import (
    AnswerFeedback,
    EvaluationRequest,
    evaluate_answer,
)

__all__ = [
    "AnswerFeedback",
    "EvaluationRequest",
    "evaluate_answer",
]
