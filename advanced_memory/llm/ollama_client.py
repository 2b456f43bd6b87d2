"""
Ollama client for local LLM inference.

Used to write community reports, to answer GraphRAG queries and to judge
statements during verification. All of these callers treat the LLM as
optional and fall back to their extractive output on `LLMError`.
"""

import json
import re
from typing import Any

import httpx

from advanced_memory.core.exceptions import LLMError
from advanced_memory.core.logging import LoggerMixin

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class OllamaClient(LoggerMixin):
    """Async client for the Ollama generate and chat endpoints."""

    def __init__(
        self,
        host: str = "http://localhost:11434",
        model: str = "mistral:7b-instruct",
        timeout: int = 120,
    ) -> None:
        """
        Args:
            host: Ollama server URL
            model: Model used for every request
            timeout: Request timeout in seconds
        """
        self.host = host.rstrip("/")
        self.model = model
        self.timeout = timeout

        self._client: httpx.AsyncClient | None = None
        self._initialized = False
        self._available_models: list[str] = []

    async def initialize(self) -> None:
        """Open the HTTP client and check which models are pulled."""
        if self._initialized:
            return

        self._client = httpx.AsyncClient(base_url=self.host, timeout=httpx.Timeout(self.timeout))
        try:
            response = await self._client.get("/api/tags")
            response.raise_for_status()
            tags = response.json().get("models", [])
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to Ollama at {self.host}. Is it running?", cause=e)
        except Exception as e:
            raise LLMError(f"Failed to initialize Ollama client: {e}", cause=e)

        self._available_models = [tag["name"] for tag in tags]
        self._initialized = True

        if self.model in self._available_models:
            self.logger.info("Ollama client initialized", host=self.host, model=self.model)
        else:
            self.logger.warning(
                "Configured model is not pulled; requests will fail until it is",
                host=self.host,
                model=self.model,
                available=self._available_models,
            )

    async def cleanup(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        self._initialized = False

    async def _post(self, endpoint: str, payload: dict[str, Any], action: str) -> dict[str, Any]:
        if not self._initialized:
            await self.initialize()

        try:
            response = await self._client.post(endpoint, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise LLMError(
                f"Ollama request timed out after {self.timeout}s",
                model=self.model,
                cause=e,
            )
        except Exception as e:
            raise LLMError(f"{action} failed: {e}", model=self.model, cause=e)

    def _payload(self, max_tokens: int, temperature: float, **fields: Any) -> dict[str, Any]:
        return {
            "model": self.model,
            "stream": False,
            "options": {"num_predict": max_tokens, "temperature": temperature},
            **fields,
        }

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        output_format: str | None = None,
    ) -> str:
        """
        Single-prompt completion.

        Args:
            prompt: Input prompt
            system: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            output_format: Ollama output format ("json" forces a JSON reply)

        Returns:
            Generated text, empty if the server sent none
        """
        payload = self._payload(max_tokens, temperature, prompt=prompt)
        if system:
            payload["system"] = system
        if output_format:
            payload["format"] = output_format

        data = await self._post("/api/generate", payload, "Generation")
        return data.get("response", "")

    async def generate_json(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int = 512,
    ) -> dict[str, Any]:
        """Deterministic completion parsed as the first JSON object in the reply."""
        text = await self.generate(
            prompt,
            system=system,
            max_tokens=max_tokens,
            temperature=0.0,
            output_format="json",
        )
        match = _JSON_OBJECT.search(text)
        if not match:
            raise LLMError("LLM response contained no JSON object", model=self.model)
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise LLMError("LLM returned malformed JSON", model=self.model, cause=e)
        return data

    async def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int = 1024,
        temperature: float = 0.3,
    ) -> str:
        """
        Chat completion.

        Args:
            messages: [{"role": "system" | "user" | "assistant", "content": ...}]
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature

        Returns:
            Assistant reply, empty if the server sent none
        """
        payload = self._payload(max_tokens, temperature, messages=messages)
        data = await self._post("/api/chat", payload, "Chat completion")
        return data.get("message", {}).get("content", "")

    @property
    def available_models(self) -> list[str]:
        return list(self._available_models)

    async def __aenter__(self) -> "OllamaClient":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.cleanup()
