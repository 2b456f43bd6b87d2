"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest
from fastapi.testclient import TestClient

from advanced_memory.api.dependencies import ServiceContainer
from advanced_memory.graphrag.engine import GraphRAGEngine
from advanced_memory.memory.engine import Mem0MemoryService
from advanced_memory.vector.embeddings import HashingEmbedder
from advanced_memory.verification.engine import GroundingVerifier
from config.settings import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings."""
    return Settings(
        app_env="development",
        debug=True,
        log_level="DEBUG",
        llm_enabled=False,
        ollama_host="http://mock-ollama:11434",
        embedding_backend="hashing",
        embedding_dimension=256,
        memory_backend="memory",
        chunk_size=120,
        chunk_overlap=20,
    )


@pytest.fixture
def app(test_settings, monkeypatch):
    """Create test FastAPI app."""
    import advanced_memory.main as main_module

    monkeypatch.setattr(main_module, "get_settings", lambda: test_settings)
    return main_module.create_app()


@pytest.fixture
def client(app) -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
async def container(test_settings) -> AsyncGenerator[ServiceContainer, None]:
    """Create and initialize service container for tests."""
    container = ServiceContainer(test_settings)
    await container.initialize()

    yield container

    await container.cleanup()


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder(dimension=256)


@pytest.fixture
def graphrag(embedder) -> GraphRAGEngine:
    return GraphRAGEngine(embedder=embedder, chunk_size=120, chunk_overlap=20)


@pytest.fixture
def memory_service(embedder) -> Mem0MemoryService:
    return Mem0MemoryService(embedder=embedder)


@pytest.fixture
def verifier(embedder) -> GroundingVerifier:
    return GroundingVerifier(embedder=embedder, threshold=0.6)


@pytest.fixture
def sample_documents() -> list[str]:
    """Small corpus with two loosely connected topics."""
    return [
        (
            "Acme Corp is headquartered in Berlin. Alice Johnson founded Acme Corp "
            "in 2015 and still leads its research lab. Acme Corp builds industrial "
            "robots for car factories."
        ),
        (
            "Alice Johnson said Acme Corp will open a second factory in Munich. "
            "The Munich factory will employ 400 engineers."
        ),
        (
            "The Pacific Ocean is the largest ocean on Earth. Marine biologists "
            "at Oceanic Institute study coral reefs in the Pacific Ocean."
        ),
    ]


@pytest.fixture
def trusted_sources_file(tmp_path: Path) -> Path:
    """Trusted sources file for the verifier."""
    path = tmp_path / "sources.json"
    path.write_text(
        '{"geography": "Paris is the capital of France. Berlin is the capital of Germany.",'
        ' "astronomy": "The Moon orbits the Earth. A lunar month lasts about 29 days."}',
        encoding="utf-8",
    )
    return path
