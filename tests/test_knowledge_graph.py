"""
Tests for the in-memory knowledge graph.

Covers entity merging, co-occurrence edges, traversal and communities.
"""

import pytest

from advanced_memory.core.exceptions import GraphError
from advanced_memory.core.types import Entity, EntityType, TextUnit
from advanced_memory.graphrag.knowledge_graph import KnowledgeGraph


def _unit(content: str, document_id: str = "doc-1") -> TextUnit:
    return TextUnit(document_id=document_id, content=content)


def _entities(*names: str) -> list[Entity]:
    return [Entity(name=name) for name in names]


@pytest.fixture
def graph():
    """Two clusters: a robotics company and an ocean institute."""
    graph = KnowledgeGraph()
    graph.add_unit(
        _unit("Alice Johnson founded Acme Corp in Berlin."),
        _entities("Alice Johnson", "Acme Corp", "Berlin"),
    )
    graph.add_unit(
        _unit("Acme Corp opened a factory in Berlin."),
        _entities("Acme Corp", "Berlin"),
    )
    graph.add_unit(
        _unit("Oceanic Institute studies the Pacific Ocean.", "doc-2"),
        _entities("Oceanic Institute", "Pacific Ocean"),
    )
    return graph


class TestAddUnit:
    def test_entities_merged_by_name(self, graph):
        acme = graph.find_entity("ACME  corp")

        assert acme is not None
        assert acme.frequency == 2
        assert len(acme.source_unit_ids) == 2
        assert len(graph.entities) == 5

    def test_cooccurrence_weights(self, graph):
        acme = graph.find_entity("Acme Corp")
        berlin = graph.find_entity("Berlin")
        alice = graph.find_entity("Alice Johnson")

        assert graph.edge_weight(acme.id, berlin.id) == 2.0
        assert graph.edge_weight(alice.id, acme.id) == 1.0
        assert graph.degree(acme.id) == 3.0

    def test_unit_records_entity_ids(self, graph):
        unit = graph.add_unit(_unit("Berlin is busy."), _entities("Berlin"))
        assert unit[0].id == graph.find_entity("Berlin").id

    def test_relations_listed(self, graph):
        relations = graph.relations
        assert len(relations) == 4
        assert all(r.weight >= 1 for r in relations)

    def test_first_type_kept_on_merge(self):
        graph = KnowledgeGraph()
        graph.add_unit(_unit("x"), [Entity(name="Berlin", entity_type=EntityType.LOCATION)])
        graph.add_unit(_unit("y"), [Entity(name="Berlin", entity_type=EntityType.CONCEPT)])
        assert graph.find_entity("berlin").entity_type == EntityType.LOCATION


class TestTraversal:
    def test_neighborhood_distances(self, graph):
        alice = graph.find_entity("Alice Johnson")
        distances = graph.neighborhood([alice.id], hops=1)

        assert distances[alice.id] == 0
        assert distances[graph.find_entity("Berlin").id] == 1
        assert graph.find_entity("Pacific Ocean").id not in distances

    def test_unknown_entity(self, graph):
        with pytest.raises(GraphError):
            graph.neighborhood(["missing"])

    def test_relations_among_sorted_by_weight(self, graph):
        ids = {e.id for e in graph.entities}
        relations = graph.relations_among(ids)
        assert relations[0].weight == 2.0


class TestCommunities:
    def test_clusters_separate(self, graph):
        communities = graph.detect_communities()

        assert len(communities) == 2
        assert [c.id for c in communities] == ["community-0", "community-1"]
        assert communities[0].rank >= communities[1].rank

        acme = graph.find_entity("Acme Corp")
        ocean = graph.find_entity("Pacific Ocean")
        assert graph.community_of(acme.id) == "community-0"
        assert graph.community_of(ocean.id) == "community-1"

    def test_title_and_summary(self, graph):
        top = graph.detect_communities()[0]

        assert top.title.startswith("Acme Corp")
        assert "Entities:" in top.summary
        assert "Relationships:" in top.summary
        assert "Key facts:" in top.summary

    def test_deterministic(self, graph):
        first = [c.entity_ids for c in graph.detect_communities()]
        second = [c.entity_ids for c in graph.detect_communities()]
        assert first == second

    def test_empty_graph(self):
        graph = KnowledgeGraph()
        assert graph.detect_communities() == []
        assert graph.is_empty


class TestStats:
    def test_counts(self, graph):
        graph.add_document("doc-1", "hash-1")
        graph.detect_communities()

        assert graph.has_document("hash-1")
        assert graph.stats() == {
            "documents": 1,
            "text_units": 3,
            "entities": 5,
            "relations": 4,
            "communities": 2,
        }


class TestSnapshot:
    def test_restore_discards_later_changes(self, graph):
        graph.detect_communities()
        state = graph.snapshot()
        before = graph.stats()
        acme = graph.find_entity("Acme Corp")
        berlin = graph.find_entity("Berlin")

        graph.add_document("doc-3", "hash-3")
        graph.add_unit(
            _unit("Acme Corp moved from Berlin to Munich.", "doc-3"),
            _entities("Acme Corp", "Berlin", "Munich"),
        )
        graph.detect_communities()
        assert graph.edge_weight(acme.id, berlin.id) == 3.0

        graph.restore(state)

        assert graph.stats() == before
        assert not graph.has_document("hash-3")
        assert graph.find_entity("Munich") is None
        assert graph.edge_weight(acme.id, berlin.id) == 2.0
        assert graph.community_of(acme.id) is not None
