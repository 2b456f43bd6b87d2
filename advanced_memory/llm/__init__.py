"""LLM integration (Ollama)."""

from advanced_memory.llm.ollama_client import OllamaClient

__all__ = ["OllamaClient"]
