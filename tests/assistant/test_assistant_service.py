from __future__ import annotations

import pytest

from conftest import FakeBackend, enroll_student

from src.eduface.eduface.assistant.service import ERROR_REPLY, FALLBACK_REPLY, AssistantService, summarize
from src.eduface.eduface.core.exceptions import ValidationError
from src.eduface.eduface.matching.client import ProviderError


def test_summary_has_no_images_and_counts_by_class(store, session):
    enroll_student(store, session.tenant_id)

    context = summarize(store.load(session.tenant_id), "2024-06-01")

    assert context["studentCount"] == 1
    assert context["classes"][0] == {"name": "Class 1", "studentCount": 1}
    assert context["financials"] == {"collected": 0, "totalDue": 50000}
    assert "base64" not in str(context)


def test_ask_builds_prompt_from_tenant_data(store, session):
    enroll_student(store, session.tenant_id)
    backend = FakeBackend(reply=" There is 1 student. ")

    reply = AssistantService(store, backend).ask(session, "How many students?")

    assert reply == "There is 1 student."
    prompt = backend.calls[0][0]["text"]
    assert "Greenwood" in prompt
    assert "How many students?" in prompt
    assert '"studentCount": 1' in prompt


def test_ask_degrades_on_provider_trouble(store, session):
    assert AssistantService(store, FakeBackend(error=ProviderError("down"))).ask(session, "hi") == ERROR_REPLY
    assert AssistantService(store, FakeBackend(reply="")).ask(session, "hi") == FALLBACK_REPLY
    with pytest.raises(ValidationError):
        AssistantService(store, FakeBackend()).ask(session, "  ")
