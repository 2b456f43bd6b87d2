"""
GraphRAG knowledge graph service.

Components:
- Chunker and entity extraction
- Co-occurrence knowledge graph with communities
- Local and global search
- GraphRAGEngine implementing GraphRAGService
"""

from advanced_memory.graphrag.engine import GraphRAGEngine
from advanced_memory.graphrag.extraction import (
    EntityExtractor,
    PatternEntityExtractor,
    SpaCyEntityExtractor,
    create_extractor,
)
from advanced_memory.graphrag.knowledge_graph import KnowledgeGraph
from advanced_memory.graphrag.service import GraphRAGService

__all__ = [
    "EntityExtractor",
    "GraphRAGEngine",
    "GraphRAGService",
    "KnowledgeGraph",
    "PatternEntityExtractor",
    "SpaCyEntityExtractor",
    "create_extractor",
]
