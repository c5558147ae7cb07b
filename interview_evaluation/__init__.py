from .evaluation import (
    EVALUATE_ANSWER_KEY,
    FINAL_EVALUATION_KEY,
    NEUTRAL_FEEDBACK,
    AnswerEvaluation,
    FinalEvaluation,
    evaluate_answer,
    generate_final_evaluation,
    neutral_evaluation,
)

__all__ = [
    "EVALUATE_ANSWER_KEY",
    "FINAL_EVALUATION_KEY",
    "NEUTRAL_FEEDBACK",
    "AnswerEvaluation",
    "FinalEvaluation",
    "evaluate_answer",
    "generate_final_evaluation",
    "neutral_evaluation",
]
