import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from interview_evaluation import AnswerEvaluation, FinalEvaluation
from jd_analysis import JobRequirements
from resume_parsing import ResumeProfile


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


class FakeOracle:
    """Scripted oracle: evaluations are popped in order, questions are numbered."""

    def __init__(self) -> None:
        self.evaluations: list[AnswerEvaluation] = []
        self.prompts: list[str] = []
        self.evaluated: list[tuple[str, str, str]] = []
        self.topics = ["System Design", "Kubernetes", "React Hooks", "PostgreSQL indexing", "OAuth"]
        self.final: FinalEvaluation | None = FinalEvaluation(
            overall_score=72,
            strengths=["clear communication"],
            weaknesses=["shallow on indexing"],
            detailed_feedback="Solid overall.",
        )
        self.question_error: Exception | None = None
        self.final_calls = 0

    def parse_resume(self, text: str) -> ResumeProfile:
        return ResumeProfile(name="Ada Lovelace", email="ada@example.com", skills=["Python"])

    def parse_job_description(self, text: str) -> JobRequirements:
        return JobRequirements(title="Backend Engineer", mandatory_skills=["Go", "Kubernetes"])

    def analyze_skill_gap(self, resume_summary: str, jd_summary: str) -> list[str]:
        return list(self.topics)

    def evaluate_answer(self, question: str, answer: str, role_context: str) -> AnswerEvaluation:
        self.evaluated.append((question, answer, role_context))
        if self.evaluations:
            return self.evaluations.pop(0)
        return AnswerEvaluation(feedback="Fine.", requires_follow_up=False)

    def generate_question_text(self, prompt: str) -> str:
        if self.question_error is not None:
            raise self.question_error
        self.prompts.append(prompt)
        return f"Question {len(self.prompts)}?"

    def generate_final_evaluation(self, transcript, jd_fields):
        self.final_calls += 1
        return self.final


@pytest.fixture
def fake_oracle() -> FakeOracle:
    return FakeOracle()
