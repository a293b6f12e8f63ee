"""
LLM backends for story generation and refinement.

A model spec string picks the backend:
- "ollama:<model>"  local Ollama chat API, no credential
- "openai:<model>"  OpenAI chat completions
- anything else     Anthropic Claude (default model from CLAUDE_MODEL)

Each provider takes one system prompt and one user prompt and returns the
raw reply text. Any failure raises; the generator decides what to fall back
to.
"""

import json
import logging
import os
import socket
from abc import ABC, abstractmethod
from dataclasses import dataclass
from http.client import HTTPConnection, HTTPException
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_MODEL = "claude-sonnet-4-5-20250929"

STORY_TEMPERATURE = 0.7
STORY_MAX_TOKENS = 500
DEFAULT_TIMEOUT = 60

_PREFIXED_PROVIDERS = ("ollama", "openai")
_KEYLESS_PROVIDERS = ("ollama",)


@dataclass
class ModelInfo:
    """Backend and model resolved from a model spec."""
    provider: str  # "anthropic" | "openai" | "ollama"
    model_name: str
    full_spec: str

    @property
    def requires_api_key(self) -> bool:
        return self.provider not in _KEYLESS_PROVIDERS


@dataclass
class GenerationResult:
    """Raw model reply plus token accounting."""
    text: str
    usage: Optional[Dict[str, int]]
    provider: str
    model: str


def parse_model_spec(model_spec: Optional[str]) -> ModelInfo:
    """
    Resolve a model spec.

    "ollama:qwen2:7b" keeps everything after the first colon as the model
    name. An empty spec means the default Claude model.
    """
    if not model_spec:
        model_spec = os.getenv("CLAUDE_MODEL", DEFAULT_CLAUDE_MODEL)
        return ModelInfo(provider="anthropic", model_name=model_spec, full_spec=model_spec)

    prefix, sep, rest = model_spec.partition(":")
    if sep and prefix in _PREFIXED_PROVIDERS:
        return ModelInfo(provider=prefix, model_name=rest, full_spec=model_spec)

    return ModelInfo(provider="anthropic", model_name=model_spec, full_spec=model_spec)


def _usage(input_tokens: Optional[int], output_tokens: Optional[int]) -> Optional[Dict[str, int]]:
    if input_tokens is None or output_tokens is None:
        return None
    return {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }


def _sampling(config: Dict[str, Any]) -> Dict[str, Any]:
    """Sampling settings from a provider config, with story defaults."""
    return {
        "temperature": float(config.get("temperature", STORY_TEMPERATURE)),
        "max_tokens": int(config.get("max_tokens", STORY_MAX_TOKENS)),
        "timeout": float(config.get("timeout", DEFAULT_TIMEOUT)),
    }


class ModelProvider(ABC):
    """One LLM backend."""

    def __init__(self, model_name: str):
        self.model_name = model_name

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        config: Dict[str, Any]
    ) -> GenerationResult:
        """
        Send one system + user prompt pair.

        Args:
            system_prompt: Team context, template and output format
            user_prompt: Story input or tweak request
            config: api_key, max_tokens, temperature, timeout

        Returns:
            GenerationResult

        Raises:
            Exception: on any transport, API or empty-reply failure
        """
        pass

    def _result(self, text: str, usage: Optional[Dict[str, int]]) -> GenerationResult:
        logger.info(f"[{type(self).__name__}] Reply received ({len(text)} chars)")
        return GenerationResult(text=text, usage=usage, provider=self.provider_name, model=self.model_name)


class ClaudeProvider(ModelProvider):
    """Anthropic Messages API."""

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def generate(self, system_prompt: str, user_prompt: str, config: Dict[str, Any]) -> GenerationResult:
        import anthropic

        sampling = _sampling(config)
        client = anthropic.Anthropic(api_key=config["api_key"], timeout=sampling["timeout"])
        logger.info(f"[ClaudeProvider] Calling {self.model_name}")

        try:
            message = client.messages.create(
                model=self.model_name,
                max_tokens=sampling["max_tokens"],
                temperature=sampling["temperature"],
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
            )
        except Exception as e:
            logger.error(f"[ClaudeProvider] Request failed: {e}")
            raise

        if not message.content:
            raise ValueError("Empty response from Claude")

        usage = getattr(message, "usage", None)
        return self._result(
            message.content[0].text,
            _usage(getattr(usage, "input_tokens", None), getattr(usage, "output_tokens", None)) if usage else None,
        )


class OpenAIProvider(ModelProvider):
    """OpenAI Chat Completions API."""

    @property
    def provider_name(self) -> str:
        return "openai"

    def generate(self, system_prompt: str, user_prompt: str, config: Dict[str, Any]) -> GenerationResult:
        from openai import OpenAI

        sampling = _sampling(config)
        client = OpenAI(api_key=config["api_key"], timeout=sampling["timeout"])
        logger.info(f"[OpenAIProvider] Calling {self.model_name}")

        try:
            completion = client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=sampling["temperature"],
                max_tokens=sampling["max_tokens"],
            )
        except Exception as e:
            logger.error(f"[OpenAIProvider] Request failed: {e}")
            raise

        text = completion.choices[0].message.content if completion.choices else None
        if not text:
            raise ValueError("Empty response from OpenAI")

        usage = getattr(completion, "usage", None)
        return self._result(
            text,
            _usage(getattr(usage, "prompt_tokens", None), getattr(usage, "completion_tokens", None)) if usage else None,
        )


class OllamaProvider(ModelProvider):
    """Local Ollama server, POST /api/chat (non-streaming)."""

    def __init__(self, model_name: str):
        super().__init__(model_name)
        self.host = os.getenv("OLLAMA_HOST", "localhost")
        self.port = int(os.getenv("OLLAMA_PORT", "11434"))

    @property
    def provider_name(self) -> str:
        return "ollama"

    def _post_chat(self, body: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        conn = HTTPConnection(self.host, self.port, timeout=timeout)
        try:
            conn.request("POST", "/api/chat", body=json.dumps(body), headers={"Content-Type": "application/json"})
            raw = conn.getresponse().read().decode("utf-8")
        finally:
            conn.close()
        return json.loads(raw)

    def generate(self, system_prompt: str, user_prompt: str, config: Dict[str, Any]) -> GenerationResult:
        sampling = _sampling(config)
        body = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "stream": False,
            "options": {
                "temperature": sampling["temperature"],
                "num_predict": sampling["max_tokens"],
            },
        }
        logger.info(f"[OllamaProvider] Calling {self.model_name} at {self.host}:{self.port}")

        try:
            reply = self._post_chat(body, sampling["timeout"])
        except socket.timeout:
            logger.error(f"[OllamaProvider] No reply within {sampling['timeout']:.0f}s")
            raise RuntimeError(f"Ollama timeout after {sampling['timeout']:.0f}s")
        except (HTTPException, OSError) as e:
            logger.error(f"[OllamaProvider] Cannot reach server: {e}")
            raise RuntimeError(f"Ollama connection failed: {e}")

        if "error" in reply:
            raise RuntimeError(f"Ollama error: {reply['error']}")

        usage = None
        if "eval_count" in reply:
            usage = _usage(reply.get("prompt_eval_count", 0), reply["eval_count"])
        return self._result(reply.get("message", {}).get("content", ""), usage)


_PROVIDER_CLASSES = {
    "anthropic": ClaudeProvider,
    "openai": OpenAIProvider,
    "ollama": OllamaProvider,
}


def get_provider(model_spec: Optional[str] = None) -> ModelProvider:
    """Build the provider for a model spec (None = default Claude model)."""
    info = parse_model_spec(model_spec)
    return _PROVIDER_CLASSES[info.provider](info.model_name)


def get_model_info(model_spec: Optional[str] = None) -> ModelInfo:
    """Resolve a model spec without building a provider."""
    return parse_model_spec(model_spec)
