from unittest.mock import MagicMock, patch

import pytest

from repo_spec_agent.errors import EnrichmentError
from repo_spec_agent.llm import DEFAULT_MODEL, LlmClient, extract_json


def _response(content):
    mock_resp = MagicMock()
    mock_resp.choices = [MagicMock()]
    mock_resp.choices[0].message.content = content
    return mock_resp


class TestLlmClient:
    def test_default_model(self):
        client = LlmClient()
        assert client.model == DEFAULT_MODEL

    def test_custom_model(self):
        client = LlmClient(model="gpt-4o")
        assert client.model == "gpt-4o"

    @patch("repo_spec_agent.llm.completion")
    def test_call_returns_content(self, mock_completion):
        mock_completion.return_value = _response("test response")

        client = LlmClient(model="gpt-4o")
        result = client.call(system="You are helpful.", user="Hello")
        assert result == "test response"
        mock_completion.assert_called_once()

    @patch("repo_spec_agent.llm.completion")
    def test_call_passes_model_and_messages(self, mock_completion):
        mock_completion.return_value = _response("ok")

        client = LlmClient(model="claude-sonnet-4-20250514")
        client.call(system="sys", user="usr")

        call_kwargs = mock_completion.call_args[1]
        assert call_kwargs["model"] == "claude-sonnet-4-20250514"
        messages = call_kwargs["messages"]
        assert messages[0]["role"] == "system"
        assert messages[1]["role"] == "user"
        assert call_kwargs["temperature"] == 0.2

    @patch("repo_spec_agent.llm.completion")
    def test_empty_reply_raises(self, mock_completion):
        mock_completion.return_value = _response("")
        with pytest.raises(EnrichmentError):
            LlmClient().call("sys", "usr")

    @patch("repo_spec_agent.llm.completion")
    def test_call_json(self, mock_completion):
        mock_completion.return_value = _response('```json\n{"GET /users": {"summary": "Lista"}}\n```')
        assert LlmClient().call_json("sys", "usr") == {"GET /users": {"summary": "Lista"}}


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_surrounding_prose(self):
        assert extract_json('Aquí tienes:\n{"a": {"b": [1, 2]}}\nListo.') == {"a": {"b": [1, 2]}}

    def test_no_object(self):
        with pytest.raises(EnrichmentError):
            extract_json("no json here")

    def test_invalid_json(self):
        with pytest.raises(EnrichmentError):
            extract_json("{not: valid}")
