"""Tests for the HTTP and WebSocket surface."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from litreview.errors import DeepResearchError, ExternalServiceError
from litreview.main import app, hub
from litreview.models.citation import Citation
from litreview.models.progress import ProgressEvent, Stage
from litreview.models.summary import ResearchSummary
from litreview.orchestrator.citation_agent import EnhancedText

SUMMARY = ResearchSummary(
    title="Adaptation",
    content="Strategies [1].",
    citations=[Citation("A Research Team", "(n.d.). X. Retrieved from https://a.org/x", "https://a.org/x")],
    model_used="agentic-flow-claude-perplexity",
)


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def _mock_agent(method, **kwargs):
    agent = MagicMock()
    setattr(agent, method, AsyncMock(**kwargs))
    return agent


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_agentic_deep_research_saves_and_returns_summary(client):
    agent = _mock_agent("run", return_value=SUMMARY)
    with patch("litreview.main._deep_research_agent", return_value=agent):
        response = client.post(
            "/api/research/agentic-deep",
            json={"text": "climate change adaptation", "search_domains": ["nature.com"], "max_tokens": 4000},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Adaptation"
    assert data["model_used"] == "agentic-flow-claude-perplexity"
    assert data["citations"][0]["url"] == "https://a.org/x"
    topic, options = agent.run.await_args.args
    assert topic == "climate change adaptation"
    assert options.search_domains == ("nature.com",)
    assert options.max_tokens == 4000

    stored = client.get(f"/api/research/{data['id']}")
    assert stored.status_code == 200
    assert stored.json()["content"] == "Strategies [1]."


def test_agentic_deep_research_failure(client):
    cause = ExternalServiceError("Perplexity", "timeout")
    agent = _mock_agent("run", side_effect=DeepResearchError(cause))
    with patch("litreview.main._deep_research_agent", return_value=agent):
        response = client.post("/api/research/agentic-deep", json={"text": "organoids"})

    assert response.status_code == 500
    assert response.json()["detail"].startswith("Deep research agent failure:")


def test_short_topic_is_rejected_before_the_pipeline(client):
    with patch("litreview.main._deep_research_agent") as factory:
        response = client.post("/api/research/agentic-deep", json={"text": "ab"})
    assert response.status_code == 422
    factory.assert_not_called()


def test_blank_search_domain_is_rejected(client):
    response = client.post("/api/research/agentic-deep", json={"text": "organoids", "search_domains": [" "]})
    assert response.status_code == 400


def test_text_research_uses_standard_mode(client):
    research = _mock_agent("generate", return_value=SUMMARY)
    with patch("litreview.main._standard_research", return_value=research):
        response = client.post(
            "/api/research/text",
            json={"text": "A long enough passage of text", "use_deep_research": "true"},
        )
    assert response.status_code == 200
    _, options = research.generate.await_args.args
    assert options.use_deep_research is True


def test_keywords_research_builds_prompt(client):
    research = _mock_agent("generate", return_value=SUMMARY)
    with patch("litreview.main._standard_research", return_value=research):
        response = client.post("/api/research/keywords", json={"keywords": "organoids", "sources_limit": 5})
    assert response.status_code == 200
    prompt, _ = research.generate.await_args.args
    assert "organoids" in prompt
    assert "up to 5 academic sources" in prompt


def test_generate_dispatches_on_type(client):
    research = _mock_agent("generate", return_value=SUMMARY)
    with patch("litreview.main._standard_research", return_value=research):
        text_response = client.post(
            "/api/research/generate",
            json={"type": "text", "text": "A long enough passage of text", "use_deep_research": True},
        )
        keywords_response = client.post(
            "/api/research/generate",
            json={"type": "keywords", "keywords": "organoids", "sources_limit": 3},
        )

    assert text_response.status_code == 200
    assert keywords_response.status_code == 200
    (text_prompt, text_options), (keywords_prompt, keywords_options) = [
        call.args for call in research.generate.await_args_list
    ]
    assert text_prompt == "A long enough passage of text"
    assert text_options.use_deep_research is True
    assert "up to 3 academic sources" in keywords_prompt
    assert keywords_options.use_deep_research is False


def test_generate_rejects_unknown_type(client):
    with patch("litreview.main._standard_research") as factory:
        response = client.post("/api/research/generate", json={"type": "pdf", "text": "A long enough passage"})
    assert response.status_code == 422
    factory.assert_not_called()


def test_keywords_sources_limit_is_bounded(client):
    response = client.post("/api/research/keywords", json={"keywords": "organoids", "sources_limit": 50})
    assert response.status_code == 422


def test_standard_mode_provider_error(client):
    research = _mock_agent("generate", side_effect=ExternalServiceError("Perplexity", "bad key", 401))
    with patch("litreview.main._standard_research", return_value=research):
        response = client.post("/api/research/text", json={"text": "A long enough passage of text"})
    assert response.status_code == 500
    assert "bad key" in response.json()["detail"]


def test_enhance_text(client):
    enhanced = EnhancedText(original_text="Some claim here.", enhanced_text="Some claim here.[1]", citations=[])
    agent = _mock_agent("enhance", return_value=enhanced)
    with patch("litreview.main._citation_agent", return_value=agent):
        response = client.post("/api/enhance-text", json={"text": "Some claim here."})
    assert response.status_code == 200
    assert response.json()["enhanced_text"] == "Some claim here.[1]"


def test_unknown_summary_is_404(client):
    assert client.get("/api/research/12345").status_code == 404


def test_websocket_greets_and_answers_ping(client):
    with client.websocket_connect("/ws") as websocket:
        assert websocket.receive_json()["type"] == "connection"
        websocket.send_json({"type": "ping"})
        assert websocket.receive_json()["type"] == "pong"


def test_websocket_receives_progress_events(client):
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        # Round-trip a ping so the subscription is registered before publishing.
        websocket.send_json({"type": "ping"})
        websocket.receive_json()
        client.portal.call(hub.publish, ProgressEvent.for_stage(Stage.RESEARCH, "researching"))
        message = websocket.receive_json()
    assert message["type"] == "research_progress"
    assert message["data"]["stage"] == "research"
    assert message["data"]["progress"] == 40
