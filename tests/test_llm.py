import asyncio
from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from openai import AsyncOpenAI, OpenAIError

from itinerary_planner import llm
from itinerary_planner.catalog import DestinationCatalog
from itinerary_planner.errors import ExternalCallError
from itinerary_planner.schemas import TripProfile
from itinerary_planner.settings import Settings


def _profile() -> TripProfile:
    return TripProfile(
        duration=4,
        start_date=date(2026, 1, 5),
        group_size=3,
        group_type="friends",
        total_budget=24000,
        budget_type="budget",
        interests=["trekking", "photography"],
    )


class _Completions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))])


class _Client:
    def __init__(self, completions: _Completions):
        self.chat = SimpleNamespace(completions=completions)
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


def _install_client(monkeypatch, completions: _Completions) -> _Client:
    client = _Client(completions)
    monkeypatch.setattr(llm, "_make_client", lambda settings: client)
    return client


def test_prompt_lists_trip_parameters_and_destinations():
    destinations = DestinationCatalog.seeded().published()
    prompt = llm.build_itinerary_prompt(_profile(), destinations)

    assert "4-day itinerary" in prompt
    assert "Dates: 2026-01-05 to 2026-01-08" in prompt
    assert "friends (3 people)" in prompt
    assert "trekking, photography" in prompt
    assert "[hundru-falls] Hundru Falls" in prompt
    assert "Sacred to local Munda tribes" in prompt
    assert '"budgetBreakdown"' in prompt


def test_prompt_describes_accessibility_needs():
    profile = _profile()
    profile.preferences.accessibility_needs = {"wheelchairAccess": True, "stairs": False, "notes": "slow pace"}

    prompt = llm.build_itinerary_prompt(profile, [])

    assert "Accessibility needs: wheelchairAccess, notes: slow pace" in prompt
    assert "Accessibility needs: None" in llm.build_itinerary_prompt(_profile(), [])


def test_call_without_api_key_raises_external_error():
    with pytest.raises(ExternalCallError, match="GEMINI_API_KEY"):
        asyncio.run(llm.call_llm("prompt", Settings(api_key=None)))


def test_call_returns_raw_model_text(monkeypatch):
    completions = _Completions(content='{"title": "Trip"}')
    _install_client(monkeypatch, completions)

    raw = asyncio.run(llm.call_llm("plan please", Settings(api_key="k", model="gemini-1.5-pro")))

    assert raw == '{"title": "Trip"}'
    sent = completions.calls[0]
    assert sent["model"] == "gemini-1.5-pro"
    assert sent["messages"][1]["content"] == "plan please"
    assert sent["response_format"] == {"type": "json_object"}


def test_provider_errors_become_external_errors(monkeypatch):
    _install_client(monkeypatch, _Completions(error=OpenAIError("quota exceeded")))

    with pytest.raises(ExternalCallError, match="quota exceeded"):
        asyncio.run(llm.call_llm("prompt", Settings(api_key="k")))


def test_empty_completion_is_an_external_error(monkeypatch):
    _install_client(monkeypatch, _Completions(content=""))

    with pytest.raises(ExternalCallError, match="empty"):
        asyncio.run(llm.call_llm("prompt", Settings(api_key="k")))


def test_settings_read_environment(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("GOOGLE_GEMINI_API_KEY", "from-google-var")
    monkeypatch.setenv("AI_TEMPERATURE", "not-a-number")
    monkeypatch.setenv("AI_MAX_OUTPUT_TOKENS", "2048")
    monkeypatch.setenv("ITINERARY_PLANNER_ALLOWED_ORIGINS", "http://a.test, http://b.test")

    settings = Settings.from_env()

    assert settings.api_key == "from-google-var"
    assert settings.temperature == 0.7
    assert settings.max_output_tokens == 2048
    assert settings.allowed_origins == ["http://a.test", "http://b.test"]


def test_client_is_closed_after_each_call(monkeypatch):
    clients = []

    def make_client(settings):
        client = _Client(_Completions(content='{"title": "Trip"}'))
        clients.append(client)
        return client

    monkeypatch.setattr(llm, "_make_client", make_client)

    for _ in range(3):
        asyncio.run(llm.call_llm("prompt", Settings(api_key="k")))

    assert len(clients) == 3
    assert all(client.closed for client in clients)


def test_client_is_closed_when_provider_fails(monkeypatch):
    client = _install_client(monkeypatch, _Completions(error=OpenAIError("boom")))

    with pytest.raises(ExternalCallError):
        asyncio.run(llm.call_llm("prompt", Settings(api_key="k")))

    assert client.closed


def test_real_openai_client_is_closed(monkeypatch):
    client = AsyncOpenAI(api_key="k", base_url="http://localhost:1")
    close = AsyncMock()
    create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="{}"))])
    )
    monkeypatch.setattr(client, "close", close)
    monkeypatch.setattr(client.chat.completions, "create", create)
    monkeypatch.setattr(llm, "_make_client", lambda settings: client)

    asyncio.run(llm.call_llm("prompt", Settings(api_key="k")))

    create.assert_awaited_once()
    close.assert_awaited_once()
