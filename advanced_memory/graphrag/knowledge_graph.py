"""
In-memory knowledge graph.

Holds the text units, entities and co-occurrence relations produced by
indexing, and partitions the entity graph into communities with
NetworkX Louvain.
"""

import copy
from collections import Counter
from itertools import combinations
from typing import Any

import networkx as nx

from advanced_memory.core.exceptions import GraphError
from advanced_memory.core.logging import LoggerMixin
from advanced_memory.core.text import split_sentences
from advanced_memory.core.types import Community, Entity, Relation, TextUnit, normalize_name


class KnowledgeGraph(LoggerMixin):
    """
    Entity co-occurrence graph with communities.

    Nodes are entity ids; an undirected edge joins two entities that appear
    in the same text unit, weighted by the number of units they share.
    """

    _STATE = (
        "_graph",
        "_entities",
        "_name_index",
        "_units",
        "_document_hashes",
        "_communities",
        "_entity_community",
    )

    def __init__(self, seed: int = 42) -> None:
        self.seed = seed
        self._graph = nx.Graph()
        self._entities: dict[str, Entity] = {}
        self._name_index: dict[str, str] = {}
        self._units: dict[str, TextUnit] = {}
        self._document_hashes: dict[str, str] = {}
        self._communities: list[Community] = []
        self._entity_community: dict[str, str] = {}

    # =========================================================================
    # Checkpoints
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the graph state, for `restore`."""
        return copy.deepcopy({name: getattr(self, name) for name in self._STATE})

    def restore(self, state: dict[str, Any]) -> None:
        for name, value in state.items():
            setattr(self, name, value)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    @property
    def units(self) -> list[TextUnit]:
        return list(self._units.values())

    @property
    def communities(self) -> list[Community]:
        return list(self._communities)

    @property
    def relations(self) -> list[Relation]:
        return [
            Relation(
                id=f"{source}:{target}",
                source_entity_id=source,
                target_entity_id=target,
                weight=data["weight"],
                source_unit_ids=sorted(data["unit_ids"]),
            )
            for source, target, data in self._graph.edges(data=True)
        ]

    @property
    def is_empty(self) -> bool:
        return not self._units

    def get_entity(self, entity_id: str) -> Entity | None:
        return self._entities.get(entity_id)

    def find_entity(self, name: str) -> Entity | None:
        """Look an entity up by any spelling of its name."""
        entity_id = self._name_index.get(normalize_name(name))
        return self._entities.get(entity_id) if entity_id else None

    def get_unit(self, unit_id: str) -> TextUnit | None:
        return self._units.get(unit_id)

    def has_document(self, content_hash: str) -> bool:
        return content_hash in self._document_hashes

    def community_of(self, entity_id: str) -> str | None:
        return self._entity_community.get(entity_id)

    def edge_weight(self, source_id: str, target_id: str) -> float:
        data = self._graph.get_edge_data(source_id, target_id)
        return data["weight"] if data else 0.0

    def degree(self, entity_id: str) -> float:
        if entity_id not in self._graph:
            return 0.0
        return float(self._graph.degree(entity_id, weight="weight"))

    # =========================================================================
    # Mutation
    # =========================================================================

    def add_document(self, document_id: str, content_hash: str) -> None:
        self._document_hashes[content_hash] = document_id

    def add_unit(self, unit: TextUnit, entities: list[Entity]) -> list[Entity]:
        """
        Add a text unit with the entities found in it.

        Entities are merged with existing ones by normalized name. Every
        pair of distinct entities in the unit gains one unit of edge weight.

        Returns:
            The stored (merged) entities for this unit
        """
        stored = []
        for entity in entities:
            mention = entity.model_copy(update={"source_unit_ids": [unit.id]})
            existing_id = self._name_index.get(mention.normalized_name)

            if existing_id is None:
                self._entities[mention.id] = mention
                self._name_index[mention.normalized_name] = mention.id
                self._graph.add_node(mention.id)
                stored.append(mention)
            else:
                merged = self._entities[existing_id].merge_with(mention)
                self._entities[existing_id] = merged
                stored.append(merged)

        entity_ids = list(dict.fromkeys(e.id for e in stored))
        unit.entity_ids = entity_ids
        self._units[unit.id] = unit

        for source, target in combinations(sorted(entity_ids), 2):
            if self._graph.has_edge(source, target):
                data = self._graph[source][target]
                data["weight"] += 1.0
                data["unit_ids"].add(unit.id)
            else:
                self._graph.add_edge(source, target, weight=1.0, unit_ids={unit.id})

        return stored

    # =========================================================================
    # Traversal
    # =========================================================================

    def neighborhood(self, entity_ids: list[str], hops: int = 1) -> dict[str, int]:
        """
        Entities reachable within `hops` of any seed.

        Returns:
            Mapping of entity id to its distance from the nearest seed
        """
        distances: dict[str, int] = {}
        for entity_id in entity_ids:
            if entity_id not in self._graph:
                raise GraphError("Unknown entity", node_id=entity_id)
            reachable = nx.single_source_shortest_path_length(
                self._graph, entity_id, cutoff=hops
            )
            for node, distance in reachable.items():
                if node not in distances or distance < distances[node]:
                    distances[node] = distance
        return distances

    def relations_among(self, entity_ids: set[str]) -> list[Relation]:
        """Relations whose endpoints both lie in `entity_ids`, heaviest first."""
        subgraph = self._graph.subgraph(entity_ids)
        relations = [
            Relation(
                id=f"{source}:{target}",
                source_entity_id=source,
                target_entity_id=target,
                weight=data["weight"],
                source_unit_ids=sorted(data["unit_ids"]),
            )
            for source, target, data in subgraph.edges(data=True)
        ]
        relations.sort(key=lambda r: r.weight, reverse=True)
        return relations

    # =========================================================================
    # Communities
    # =========================================================================

    def detect_communities(self, resolution: float = 1.0) -> list[Community]:
        """
        Partition entities into communities and write extractive reports.

        Args:
            resolution: Louvain resolution; higher values give smaller communities

        Returns:
            Communities sorted by rank, highest first
        """
        if self._graph.number_of_nodes() == 0:
            self._communities = []
            self._entity_community = {}
            return []

        try:
            partition = nx.community.louvain_communities(
                self._graph,
                weight="weight",
                resolution=resolution,
                seed=self.seed,
            )
        except Exception as e:
            raise GraphError(f"Community detection failed: {e}", cause=e)

        communities = []
        for members in partition:
            ordered = sorted(members, key=lambda n: (-self.degree(n), self._entities[n].name))
            subgraph = self._graph.subgraph(members)
            internal_weight = subgraph.size(weight="weight")
            communities.append(
                Community(
                    id="",
                    entity_ids=ordered,
                    title=", ".join(self._entities[n].name for n in ordered[:3]),
                    rank=float(internal_weight + len(members)),
                )
            )

        communities.sort(key=lambda c: (-c.rank, c.title))
        for index, community in enumerate(communities):
            community.id = f"community-{index}"
            community.summary = self.summarize_community(community)

        self._communities = communities
        self._entity_community = {
            entity_id: c.id for c in communities for entity_id in c.entity_ids
        }

        self.logger.info(
            "Communities detected",
            communities=len(communities),
            entities=self._graph.number_of_nodes(),
        )
        return communities

    def summarize_community(self, community: Community, max_sentences: int = 3) -> str:
        """Extractive report: members, strongest relations and key sentences."""
        members = [self._entities[n] for n in community.entity_ids]
        lines = [f"Community: {community.title}", "Entities:"]
        for entity in members[:10]:
            lines.append(
                f"- {entity.name} ({entity.entity_type.value}), "
                f"mentioned {entity.frequency} time(s)"
            )

        relations = self.relations_among(set(community.entity_ids))[:5]
        if relations:
            lines.append("Relationships:")
            for relation in relations:
                source = self._entities[relation.source_entity_id].name
                target = self._entities[relation.target_entity_id].name
                lines.append(
                    f"- {source} <-> {target} (co-occur in {int(relation.weight)} passage(s))"
                )

        sentences = self._key_sentences(members, max_sentences)
        if sentences:
            lines.append("Key facts:")
            lines.extend(f"- {s}" for s in sentences)

        return "\n".join(lines)

    def _key_sentences(self, members: list[Entity], limit: int) -> list[str]:
        """Sentences that mention the most community members."""
        names = [e.name for e in members]
        unit_ids = Counter(u for e in members for u in e.source_unit_ids)

        scored: dict[str, int] = {}
        for unit_id, _ in unit_ids.most_common(10):
            unit = self._units.get(unit_id)
            if unit is None:
                continue
            for sentence in split_sentences(unit.content):
                hits = sum(1 for name in names if name in sentence)
                if hits and hits > scored.get(sentence, 0):
                    scored[sentence] = hits

        ranked = sorted(scored.items(), key=lambda item: item[1], reverse=True)
        return [sentence[:300] for sentence, _ in ranked[:limit]]

    def stats(self) -> dict[str, Any]:
        return {
            "documents": len(self._document_hashes),
            "text_units": len(self._units),
            "entities": self._graph.number_of_nodes(),
            "relations": self._graph.number_of_edges(),
            "communities": len(self._communities),
        }
