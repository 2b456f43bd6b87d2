"""
Local and global search over the knowledge graph.

Local search starts from the entities a query names and walks their
neighbourhood to collect supporting text units. Global search scores
community reports against the query (map) and merges the best ones into
a single context (reduce).
"""

from dataclasses import dataclass, field

import numpy as np

from advanced_memory.core.logging import LoggerMixin
from advanced_memory.core.text import content_tokens
from advanced_memory.core.types import Community, Entity, Relation, SearchType, TextUnit
from advanced_memory.graphrag.knowledge_graph import KnowledgeGraph
from advanced_memory.vector.index import InMemoryVectorIndex


@dataclass
class SearchContext:
    """Everything a search gathered for one query."""

    search_type: SearchType
    entities: list[tuple[Entity, float]] = field(default_factory=list)
    relations: list[Relation] = field(default_factory=list)
    units: list[tuple[TextUnit, float]] = field(default_factory=list)
    communities: list[tuple[Community, float]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.entities or self.units or self.communities)

    def render(self, graph: KnowledgeGraph) -> str:
        """Render the context as the plain-text report fed to the LLM."""
        sections = []

        if self.communities:
            lines = ["-----Community Reports-----"]
            for community, score in self.communities:
                lines.append(f"## {community.title} (relevance {score:.2f})")
                lines.append(community.summary)
            sections.append("\n".join(lines))

        if self.entities:
            lines = ["-----Entities-----"]
            for entity, score in self.entities:
                line = f"- {entity.name} ({entity.entity_type.value}, score {score:.2f})"
                if entity.description:
                    line += f": {entity.description}"
                lines.append(line)
            sections.append("\n".join(lines))

        if self.relations:
            lines = ["-----Relationships-----"]
            for relation in self.relations:
                source = graph.get_entity(relation.source_entity_id)
                target = graph.get_entity(relation.target_entity_id)
                if source is None or target is None:
                    continue
                lines.append(
                    f"- {source.name} <-> {target.name} "
                    f"(co-occur in {int(relation.weight)} passage(s))"
                )
            sections.append("\n".join(lines))

        if self.units:
            lines = ["-----Sources-----"]
            for index, (unit, score) in enumerate(self.units, 1):
                lines.append(f"[{index}] (score {score:.2f}) {unit.content}")
            sections.append("\n".join(lines))

        return "\n\n".join(sections)


class LocalSearch(LoggerMixin):
    """Entity-centred search: matched entities, their neighbours and sources."""

    ENTITY_MATCH_THRESHOLD = 0.2
    MENTION_BONUS = 0.1
    MAX_RELATIONS = 10

    def __init__(
        self,
        graph: KnowledgeGraph,
        entity_index: InMemoryVectorIndex,
        unit_index: InMemoryVectorIndex,
        top_k_entities: int = 10,
        top_k_units: int = 5,
        hops: int = 1,
    ) -> None:
        self.graph = graph
        self.entity_index = entity_index
        self.unit_index = unit_index
        self.top_k_entities = top_k_entities
        self.top_k_units = top_k_units
        self.hops = hops

    def match_entities(self, query: str, query_vector: np.ndarray) -> list[tuple[Entity, float]]:
        """
        Score entities against the query.

        The score blends lexical coverage of the entity's name by the query
        (0.7) with embedding similarity (0.3).
        """
        query_tokens = set(content_tokens(query))
        similarities = self.entity_index.similarities(query_vector)

        scored = []
        for entity in self.graph.entities:
            name_tokens = set(content_tokens(entity.name))
            lexical = (
                len(name_tokens & query_tokens) / len(name_tokens) if name_tokens else 0.0
            )
            score = 0.7 * lexical + 0.3 * max(similarities.get(entity.id, 0.0), 0.0)
            if score >= self.ENTITY_MATCH_THRESHOLD:
                scored.append((entity, score))

        scored.sort(key=lambda item: (item[1], item[0].frequency), reverse=True)
        return scored[: self.top_k_entities]

    def search(self, query: str, query_vector: np.ndarray) -> SearchContext:
        context = SearchContext(search_type=SearchType.LOCAL)
        matched = self.match_entities(query, query_vector)
        matched_ids = {entity.id for entity, _ in matched}

        related: list[tuple[Entity, float]] = []
        if matched_ids:
            distances = self.graph.neighborhood(list(matched_ids), hops=self.hops)
            for entity_id, distance in distances.items():
                if entity_id in matched_ids:
                    continue
                strength = max(
                    (self.graph.edge_weight(entity_id, m) for m in matched_ids),
                    default=0.0,
                )
                entity = self.graph.get_entity(entity_id)
                related.append((entity, strength / (distance + 1)))
            related.sort(key=lambda item: item[1], reverse=True)
            related = related[: self.top_k_entities]

        context.entities = matched + related
        context.relations = self.graph.relations_among(
            matched_ids | {entity.id for entity, _ in related}
        )[: self.MAX_RELATIONS]

        candidate_ids = {
            unit_id for entity, _ in context.entities for unit_id in entity.source_unit_ids
        }
        unit_scores = self.unit_index.similarities(
            query_vector, candidate_ids if candidate_ids else None
        )

        ranked = []
        for unit_id, similarity in unit_scores.items():
            unit = self.graph.get_unit(unit_id)
            if unit is None:
                continue
            mentions = len(matched_ids.intersection(unit.entity_ids))
            score = similarity + self.MENTION_BONUS * mentions
            if score > 0:
                ranked.append((unit, score))

        ranked.sort(key=lambda item: item[1], reverse=True)
        context.units = ranked[: self.top_k_units]

        self.logger.debug(
            "Local search",
            matched=len(matched),
            related=len(related),
            units=len(context.units),
        )
        return context


class GlobalSearch(LoggerMixin):
    """Community-report map-reduce search for corpus-wide questions."""

    SIMILARITY_WEIGHT = 0.8
    RANK_WEIGHT = 0.2

    def __init__(
        self,
        graph: KnowledgeGraph,
        community_index: InMemoryVectorIndex,
        top_k_communities: int = 5,
    ) -> None:
        self.graph = graph
        self.community_index = community_index
        self.top_k_communities = top_k_communities

    def map_communities(self, query_vector: np.ndarray) -> list[tuple[Community, float]]:
        """Score each community report; reports with no similarity score 0."""
        communities = self.graph.communities
        if not communities:
            return []

        similarities = self.community_index.similarities(query_vector)
        max_rank = max(c.rank for c in communities) or 1.0

        scored = []
        for community in communities:
            similarity = similarities.get(community.id, 0.0)
            if similarity <= 0:
                scored.append((community, 0.0))
                continue
            score = (
                self.SIMILARITY_WEIGHT * similarity
                + self.RANK_WEIGHT * community.rank / max_rank
            )
            scored.append((community, score))

        scored.sort(key=lambda item: (item[1], item[0].rank), reverse=True)
        return scored

    def search(self, query: str, query_vector: np.ndarray) -> SearchContext:
        context = SearchContext(search_type=SearchType.GLOBAL)
        scored = self.map_communities(query_vector)

        relevant = [item for item in scored if item[1] > 0]
        if not relevant:
            # No report overlaps the query: use the highest-ranked communities.
            relevant = sorted(scored, key=lambda item: item[0].rank, reverse=True)

        context.communities = relevant[: self.top_k_communities]
        self.logger.debug(
            "Global search",
            communities=len(scored),
            selected=len(context.communities),
        )
        return context
