import pytest
from unittest.mock import patch, MagicMock

from classalign.main import app
from classalign.models.schedule_types import ClassEntry, Intent, IntentAction
from classalign.services import llm_client
from classalign.services.assistant_service import (
    NO_SUGGESTION,
    SYSTEM_PROMPT,
    AssistantError,
    ask_ai_scheduler,
    build_user_message,
)
from classalign.services.auth_tokens import AppUser, issue_app_token
from classalign.services.schedule_actions import ActionResult


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv('JWT_SECRET_KEY', 'test-secret')
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def _fake_client(content):
    client = MagicMock()
    client.chat.completions.create.return_value = MagicMock(
        choices=[MagicMock(message=MagicMock(content=content))]
    )
    return client


class TestAssistantService:

    def test_user_message_without_schedule(self):
        assert build_user_message("Make me a schedule", None) == "Make me a schedule"

    def test_user_message_appends_schedule_json(self):
        message = build_user_message("Any gaps?", [{"subject": "Math"}])
        assert message.startswith("Any gaps?\n\nHere is my current schedule:\n")
        assert '"subject": "Math"' in message

    def test_reply(self, monkeypatch):
        fake = _fake_client("  Try moving Math to Tuesday.  ")
        monkeypatch.setattr(llm_client, "get_client", lambda: fake)

        assert ask_ai_scheduler("Help") == "Try moving Math to Tuesday."
        messages = fake.chat.completions.create.call_args[1]["messages"]
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}

    def test_empty_reply(self, monkeypatch):
        monkeypatch.setattr(llm_client, "get_client", lambda: _fake_client(None))
        assert ask_ai_scheduler("Help") == NO_SUGGESTION

    def test_not_configured(self, monkeypatch):
        monkeypatch.setattr(llm_client, "get_client", lambda: None)
        with pytest.raises(AssistantError):
            ask_ai_scheduler("Help")

    def test_api_failure(self, monkeypatch):
        fake = MagicMock()
        fake.chat.completions.create.side_effect = RuntimeError("rate limited")
        monkeypatch.setattr(llm_client, "get_client", lambda: fake)
        with pytest.raises(AssistantError):
            ask_ai_scheduler("Help")


def test_llm_client_uses_openrouter_defaults(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "router-key")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    monkeypatch.delenv("OPENAI_MODEL", raising=False)

    client = llm_client.get_client()

    assert str(client.base_url).rstrip("/") == llm_client.DEFAULT_BASE_URL
    assert llm_client.llm_model() == "mistralai/mistral-7b-instruct:free"
    assert llm_client.llm_headers()["X-Title"] == "ClassAlign"


def test_llm_client_without_key(monkeypatch):
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert llm_client.get_client() is None


class TestAssistantRoutes:

    @patch('classalign.routes.assistant.ask_ai_scheduler')
    def test_ai_schedule(self, mock_ask, client):
        mock_ask.return_value = "Here is a plan."

        response = client.post('/ai-schedule', json={'prompt': 'Plan my week', 'schedule': []})

        assert response.status_code == 200
        assert response.get_json() == {'reply': 'Here is a plan.'}
        mock_ask.assert_called_once_with('Plan my week', [])

    def test_ai_schedule_requires_prompt(self, client):
        response = client.post('/ai-schedule', json={})
        assert response.status_code == 400

    def test_ai_schedule_rejects_non_list_schedule(self, client):
        response = client.post('/ai-schedule', json={'prompt': 'Hi', 'schedule': 'Math'})
        assert response.status_code == 400

    @patch('classalign.routes.assistant.ask_ai_scheduler')
    def test_ai_schedule_failure(self, mock_ask, client):
        mock_ask.side_effect = AssistantError("AI failed to respond")

        response = client.post('/ai-schedule', json={'prompt': 'Plan my week'})

        assert response.status_code == 500
        assert response.get_json() == {'message': 'AI failed to respond'}

    def test_action_requires_token(self, client):
        response = client.post('/ai-schedule-action', json={'prompt': 'delete all classes'})
        assert response.status_code == 401

    @patch('classalign.routes.assistant.apply_intent')
    @patch('classalign.routes.assistant.parse_intent')
    @patch('classalign.routes.assistant.list_classes')
    def test_action(self, mock_list, mock_parse, mock_apply, client):
        current = [ClassEntry(id="1", user_id="user-1", subject="Math", day="Monday", time="09:00")]
        intent = Intent(action=IntentAction.DELETE, subject="Math")
        mock_list.return_value = current
        mock_parse.return_value = intent
        mock_apply.return_value = ActionResult(reply="Deleted Math class.", intent=intent, schedule=[])
        token = issue_app_token(AppUser(id="user-1", email="jane@example.com"))

        response = client.post(
            '/ai-schedule-action',
            json={'prompt': 'delete Math class'},
            headers={'Authorization': f'Bearer {token}'},
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body['reply'] == "Deleted Math class."
        assert body['intent']['action'] == 'delete'
        assert body['schedule'] == []
        mock_parse.assert_called_once_with('delete Math class', current)
        mock_apply.assert_called_once_with('user-1', intent)
