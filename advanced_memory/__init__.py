"""
Advanced Memory.

Local-first knowledge services for agents:
- GraphRAG: knowledge graph indexing with local and global search
- Mem0-style per-user long-term memory
- Fact verification and grounding against trusted sources
"""

__version__ = "0.1.0"
__author__ = "Advanced Memory Team"
