import pytest

import activities.concept as concept_activity
import activities.decision as decision_activity
import activities.plan as plan_activity
import activities.task_output as task_output_activity
from models.errors import ConceptGenerationError, DecisionError, PlanError
from models.schemas import Concept, Decision, PlannedTask
from utils.llm import GenerationError
from workflows.generation import OpenAIGenerationService


def _reply(monkeypatch, module, result):
    calls = []

    def fake_chat_json(system, user, **kwargs):
        calls.append({"system": system, "user": user, **kwargs})
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(module, "chat_json", fake_chat_json)
    return calls


# ── Concept ──────────────────────────────────────────────────────────

def test_concept_fields_are_trimmed(monkeypatch):
    _reply(monkeypatch, concept_activity, {
        "trend": " AI thumbnail maker ", "sector": "Creators",
        "opportunity": "Thumbnails drive clicks", "project_name": "thumb-smith",
    })
    assert concept_activity.generate_concept() == {
        "trend": "AI thumbnail maker", "sector": "Creators",
        "opportunity": "Thumbnails drive clicks", "project_name": "thumb-smith",
        "is_fallback": False,
    }


def test_concept_missing_field_raises(monkeypatch):
    _reply(monkeypatch, concept_activity, {"trend": "x", "sector": "y", "opportunity": ""})
    with pytest.raises(ConceptGenerationError, match="opportunity, project_name"):
        concept_activity.generate_concept()


def test_concept_generation_error_is_wrapped(monkeypatch):
    _reply(monkeypatch, concept_activity, GenerationError("JSON parse failed"))
    with pytest.raises(ConceptGenerationError) as exc_info:
        concept_activity.generate_concept()
    assert isinstance(exc_info.value.__cause__, GenerationError)


# ── Decision ─────────────────────────────────────────────────────────

def test_decision_prompt_includes_concept(monkeypatch):
    calls = _reply(monkeypatch, decision_activity, {"vision": "Own the niche", "kpis": ["a", 2]})
    result = decision_activity.generate_decision({
        "trend": "AI thumbnail maker", "sector": "Creators", "opportunity": "clicks",
    })
    assert result == {"vision": "Own the niche", "kpis": ["a", "2"]}
    assert "AI thumbnail maker" in calls[0]["user"]


def test_decision_without_vision_raises(monkeypatch):
    _reply(monkeypatch, decision_activity, {"vision": "  ", "kpis": []})
    with pytest.raises(DecisionError):
        decision_activity.generate_decision({})


def test_decision_kpis_must_be_a_list(monkeypatch):
    _reply(monkeypatch, decision_activity, {"vision": "v", "kpis": "lots"})
    with pytest.raises(DecisionError, match="KPIs must be a list"):
        decision_activity.generate_decision({})


# ── Plan ─────────────────────────────────────────────────────────────

def test_plan_accepts_both_key_spellings(monkeypatch):
    calls = _reply(monkeypatch, plan_activity, {"tasks": [
        {"title": "Write the PRD", "assignedAgentId": "product-owner"},
        {"title": "Design the schema", "assigned_agent_id": "db-arch"},
    ]})
    plan = plan_activity.generate_plan({"vision": "v", "kpis": ["k"]})

    assert plan == [
        {"title": "Write the PRD", "assigned_agent_id": "product-owner"},
        {"title": "Design the schema", "assigned_agent_id": "db-arch"},
    ]
    assert "product-owner" in calls[0]["system"]


def test_plan_without_task_list_raises(monkeypatch):
    _reply(monkeypatch, plan_activity, {"steps": []})
    with pytest.raises(PlanError, match="no task list"):
        plan_activity.generate_plan({"vision": "v"})


def test_plan_item_without_agent_raises(monkeypatch):
    _reply(monkeypatch, plan_activity, {"tasks": [{"title": "Orphan"}]})
    with pytest.raises(PlanError, match="Task 0"):
        plan_activity.generate_plan({"vision": "v"})


def test_empty_plan_is_returned_as_is(monkeypatch):
    _reply(monkeypatch, plan_activity, {"tasks": []})
    assert plan_activity.generate_plan({"vision": "v"}) == []


# ── Task output ──────────────────────────────────────────────────────

def test_task_output_passes_prompt_through(monkeypatch):
    seen = {}

    def fake_chat(system, user, **kwargs):
        seen["user"] = user
        return "### README.md\n```markdown\n# Hi\n```"

    monkeypatch.setattr(task_output_activity, "chat", fake_chat)
    assert task_output_activity.generate_task_output("Current Task: Docs").startswith("### README.md")
    assert seen["user"] == "Current Task: Docs"


# ── In-process service ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_openai_service_converts_activity_results(monkeypatch):
    import workflows.generation as generation

    monkeypatch.setattr(generation, "generate_concept", lambda: {
        "trend": "t", "sector": "s", "opportunity": "o", "project_name": "p",
    })
    monkeypatch.setattr(generation, "generate_decision", lambda c: {"vision": c["trend"], "kpis": ["k"]})
    monkeypatch.setattr(generation, "generate_plan", lambda d: [
        {"title": d["vision"], "assigned_agent_id": "doc-01"},
    ])
    monkeypatch.setattr(generation, "generate_task_output", lambda prompt: prompt.upper())
    service = OpenAIGenerationService()

    concept = await service.generate_concept()
    decision = await service.generate_decision(concept)
    plan = await service.generate_plan(decision)

    assert concept == Concept("t", "s", "o", "p")
    assert decision == Decision("t", ("k",))
    assert plan == [PlannedTask("t", "doc-01")]
    assert await service.generate_task_output("abc") == "ABC"


@pytest.mark.asyncio
async def test_openai_service_propagates_activity_errors(monkeypatch):
    import workflows.generation as generation

    def broken(concept):
        raise DecisionError("no vision")

    monkeypatch.setattr(generation, "generate_decision", broken)
    with pytest.raises(DecisionError):
        await OpenAIGenerationService().generate_decision(Concept("t", "s", "o", "p"))
