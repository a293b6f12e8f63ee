"""Tests for model_provider module."""

import json
import os
import socket
import pytest
from unittest.mock import patch, MagicMock

from agile_story.story.model_provider import (
    DEFAULT_CLAUDE_MODEL,
    STORY_MAX_TOKENS,
    STORY_TEMPERATURE,
    ClaudeProvider,
    GenerationResult,
    ModelInfo,
    OllamaProvider,
    OpenAIProvider,
    get_model_info,
    get_provider,
    parse_model_spec,
)


class TestModelInfo:
    """Tests for ModelInfo dataclass."""

    def test_requires_api_key(self):
        """Hosted providers need a key, Ollama does not."""
        assert ModelInfo("anthropic", "claude-x", "claude-x").requires_api_key is True
        assert ModelInfo("openai", "gpt-4o-mini", "openai:gpt-4o-mini").requires_api_key is True
        assert ModelInfo("ollama", "llama3", "ollama:llama3").requires_api_key is False


class TestParseModelSpec:
    """Tests for parse_model_spec function."""

    def test_parse_none_returns_default_claude(self):
        """Test that None returns default Claude model."""
        with patch.dict(os.environ, {"CLAUDE_MODEL": "claude-test-model"}, clear=False):
            info = parse_model_spec(None)
            assert info.provider == "anthropic"
            assert info.model_name == "claude-test-model"

    def test_parse_none_without_env_uses_default(self):
        """Test that None without env var uses hardcoded default."""
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("CLAUDE_MODEL", None)
            info = parse_model_spec(None)
            assert info.provider == "anthropic"
            assert info.model_name == DEFAULT_CLAUDE_MODEL

    def test_parse_ollama_spec(self):
        info = parse_model_spec("ollama:qwen2:7b-instruct")
        assert info.provider == "ollama"
        assert info.model_name == "qwen2:7b-instruct"
        assert info.full_spec == "ollama:qwen2:7b-instruct"

    def test_parse_openai_spec(self):
        info = parse_model_spec("openai:gpt-4o-mini")
        assert info.provider == "openai"
        assert info.model_name == "gpt-4o-mini"

    def test_parse_claude_spec(self):
        info = parse_model_spec("claude-3-5-haiku-latest")
        assert info.provider == "anthropic"
        assert info.model_name == "claude-3-5-haiku-latest"


class TestGetProvider:
    """Tests for get_provider / get_model_info."""

    def test_provider_selection(self):
        assert isinstance(get_provider("ollama:llama3"), OllamaProvider)
        assert isinstance(get_provider("openai:gpt-4o-mini"), OpenAIProvider)
        assert isinstance(get_provider("claude-x"), ClaudeProvider)
        assert isinstance(get_provider(None), ClaudeProvider)

    def test_get_model_info(self):
        assert get_model_info("openai:gpt-4o").provider == "openai"


class TestClaudeProvider:
    """Tests for ClaudeProvider class."""

    def test_provider_name(self):
        assert ClaudeProvider("claude-test").provider_name == "anthropic"

    def test_generate_success(self):
        """Test successful generation."""
        provider = ClaudeProvider("claude-test")

        mock_message = MagicMock()
        mock_message.content = [MagicMock(text='{"formattedStory": "Story"}')]
        mock_message.usage = MagicMock(input_tokens=100, output_tokens=50)

        mock_client = MagicMock()
        mock_client.messages.create.return_value = mock_message

        with patch("anthropic.Anthropic", return_value=mock_client) as mock_cls:
            result = provider.generate(
                system_prompt="You are an agile coach",
                user_prompt="User Input: ...",
                config={"api_key": "test-key", "timeout": 30}
            )

        assert result.text == '{"formattedStory": "Story"}'
        assert result.provider == "anthropic"
        assert result.usage["total_tokens"] == 150
        mock_cls.assert_called_once_with(api_key="test-key", timeout=30.0)

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["system"] == "You are an agile coach"
        assert kwargs["messages"] == [{"role": "user", "content": "User Input: ..."}]
        assert kwargs["temperature"] == STORY_TEMPERATURE
        assert kwargs["max_tokens"] == STORY_MAX_TOKENS

    def test_generate_without_usage(self):
        provider = ClaudeProvider("claude-test")

        mock_message = MagicMock()
        mock_message.content = [MagicMock(text="Story text")]
        mock_message.usage = None

        mock_client = MagicMock()
        mock_client.messages.create.return_value = mock_message

        with patch("anthropic.Anthropic", return_value=mock_client):
            result = provider.generate("System", "User", {"api_key": "test-key"})

        assert result.text == "Story text"
        assert result.usage is None

    def test_generate_empty_content_raises(self):
        provider = ClaudeProvider("claude-test")

        mock_message = MagicMock()
        mock_message.content = []

        mock_client = MagicMock()
        mock_client.messages.create.return_value = mock_message

        with patch("anthropic.Anthropic", return_value=mock_client):
            with pytest.raises(ValueError, match="Empty response"):
                provider.generate("System", "User", {"api_key": "test-key"})

    def test_generate_raises_on_error(self):
        provider = ClaudeProvider("claude-test")

        mock_client = MagicMock()
        mock_client.messages.create.side_effect = Exception("API Error")

        with patch("anthropic.Anthropic", return_value=mock_client):
            with pytest.raises(Exception, match="API Error"):
                provider.generate("System", "User", {"api_key": "test-key"})


class TestOpenAIProvider:
    """Tests for OpenAIProvider class."""

    def _completion(self, content):
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content=content))]
        completion.usage = MagicMock(prompt_tokens=40, completion_tokens=60, total_tokens=100)
        return completion

    def test_provider_name(self):
        assert OpenAIProvider("gpt-4o-mini").provider_name == "openai"

    def test_generate_success(self):
        provider = OpenAIProvider("gpt-4o-mini")

        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = self._completion("Story")

        with patch("openai.OpenAI", return_value=mock_client):
            result = provider.generate("System", "User", {"api_key": "sk-test"})

        assert result.text == "Story"
        assert result.provider == "openai"
        assert result.model == "gpt-4o-mini"
        assert result.usage == {"input_tokens": 40, "output_tokens": 60, "total_tokens": 100}

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["messages"] == [
            {"role": "system", "content": "System"},
            {"role": "user", "content": "User"},
        ]
        assert kwargs["temperature"] == STORY_TEMPERATURE

    def test_generate_empty_reply_raises(self):
        provider = OpenAIProvider("gpt-4o-mini")

        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = self._completion(None)

        with patch("openai.OpenAI", return_value=mock_client):
            with pytest.raises(ValueError, match="Empty response"):
                provider.generate("System", "User", {"api_key": "sk-test"})


class TestOllamaProvider:
    """Tests for OllamaProvider class."""

    def _mock_conn(self, payload):
        mock_response = MagicMock()
        mock_response.read.return_value = json.dumps(payload).encode("utf-8")
        mock_conn = MagicMock()
        mock_conn.getresponse.return_value = mock_response
        return mock_conn

    def test_init_custom_host_port(self):
        with patch.dict(os.environ, {"OLLAMA_HOST": "192.168.1.100", "OLLAMA_PORT": "8080"}):
            provider = OllamaProvider("llama3")
            assert provider.host == "192.168.1.100"
            assert provider.port == 8080

    def test_generate_success(self):
        provider = OllamaProvider("llama3")
        mock_conn = self._mock_conn({
            "message": {"role": "assistant", "content": "A story"},
            "prompt_eval_count": 50,
            "eval_count": 200,
        })

        with patch("agile_story.story.model_provider.HTTPConnection", return_value=mock_conn):
            result = provider.generate("System", "User", {"temperature": 0.7})

        assert result.text == "A story"
        assert result.provider == "ollama"
        assert result.usage["total_tokens"] == 250

        args, kwargs = mock_conn.request.call_args
        assert args[:2] == ("POST", "/api/chat")
        body = json.loads(kwargs["body"])
        assert body["messages"][0] == {"role": "system", "content": "System"}
        assert body["stream"] is False

    def test_generate_error_response(self):
        provider = OllamaProvider("missing-model")
        mock_conn = self._mock_conn({"error": "model not found"})

        with patch("agile_story.story.model_provider.HTTPConnection", return_value=mock_conn):
            with pytest.raises(RuntimeError, match="Ollama error"):
                provider.generate("System", "User", {})

    def test_generate_timeout(self):
        provider = OllamaProvider("llama3")
        mock_conn = MagicMock()
        mock_conn.request.side_effect = socket.timeout("timed out")

        with patch("agile_story.story.model_provider.HTTPConnection", return_value=mock_conn):
            with pytest.raises(RuntimeError, match="timeout"):
                provider.generate("System", "User", {"timeout": 5})

    def test_generate_connection_error(self):
        provider = OllamaProvider("llama3")
        mock_conn = MagicMock()
        mock_conn.request.side_effect = ConnectionRefusedError("refused")

        with patch("agile_story.story.model_provider.HTTPConnection", return_value=mock_conn):
            with pytest.raises(RuntimeError, match="connection failed"):
                provider.generate("System", "User", {})


class TestGenerationResult:
    """Tests for GenerationResult dataclass."""

    def test_creation(self):
        result = GenerationResult(text="t", usage=None, provider="openai", model="gpt-4o-mini")
        assert result.usage is None
