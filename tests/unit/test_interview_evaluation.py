import interview_evaluation.evaluation as eval_mod
from config import LlmRoute
from llm_gateway import LlmGatewayError


def _route() -> LlmRoute:
    return LlmRoute(
        name="test",
        base_url="http://example.com",
        endpoint="/llm",
        model="test-model",
        timeout_s=1.0,
    )


def _failing_call(task, schema, *, cfg, max_retries=None):
    raise LlmGatewayError("LLM call failed after 1 attempt(s)")


def test_evaluate_answer_uses_single_attempt(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def fake_call(task, schema, *, cfg, max_retries=None):
        captured["task"] = task
        captured["max_retries"] = max_retries
        return eval_mod.AnswerEvaluation(feedback="Good.", requires_follow_up=False)

    monkeypatch.setattr(eval_mod, "call", fake_call)
    result = eval_mod.evaluate_answer("What is a mutex?", "A lock.", "Backend Engineer", route=_route())
    assert result.feedback == "Good."
    assert captured["max_retries"] == 0
    assert "Backend Engineer" in captured["task"]
    assert 'Question: "What is a mutex?"' in captured["task"]


def test_evaluate_answer_falls_back_to_neutral(monkeypatch) -> None:
    monkeypatch.setattr(eval_mod, "call", _failing_call)
    result = eval_mod.evaluate_answer("Q", "A", "Backend Engineer", route=_route())
    assert result.feedback == eval_mod.NEUTRAL_FEEDBACK
    assert result.requires_follow_up is False
    assert result.new_topic is None


def test_answer_evaluation_normalizes_fields() -> None:
    verdict = eval_mod.AnswerEvaluation.model_validate(
        {"feedback": None, "requires_follow_up": "true", "new_topic": "  "}
    )
    assert verdict.feedback == ""
    assert verdict.requires_follow_up is True
    assert verdict.new_topic is None


def test_final_evaluation_returns_none_on_failure(monkeypatch) -> None:
    monkeypatch.setattr(eval_mod, "call", _failing_call)
    assert eval_mod.generate_final_evaluation([], None, route=_route()) is None


def test_final_task_includes_transcript_and_requirements() -> None:
    task = eval_mod._build_final_task(
        [{"question": "Q1", "answer": "A1"}],
        {"title": "SRE", "mandatory_skills": ["Linux"]},
    )
    assert '"question": "Q1"' in task
    assert '"mandatory_skills": ["Linux"]' in task
