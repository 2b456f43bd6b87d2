"""
Entity extraction for knowledge graph construction.

Supports two backends:
- Pattern rules (default, no model download)
- spaCy NER (optional, loaded lazily)
"""

import re
from abc import ABC, abstractmethod
from typing import Any

from advanced_memory.core.exceptions import ConfigurationError, GraphError
from advanced_memory.core.logging import LoggerMixin
from advanced_memory.core.text import STOPWORDS, split_sentences
from advanced_memory.core.types import Entity, EntityType, normalize_name


class EntityExtractor(ABC, LoggerMixin):
    """Abstract base class for entity extractors."""

    def __init__(self, **config: Any) -> None:
        self.config = config
        self._initialized = False

    @abstractmethod
    async def initialize(self) -> None:
        """Load models or compile rules."""

    @abstractmethod
    async def extract(self, text: str) -> list[Entity]:
        """Extract entities from text, one per distinct normalized name."""

    async def cleanup(self) -> None:
        self._initialized = False

    @staticmethod
    def _describe(name: str, text: str) -> str:
        """First sentence of the text that mentions the entity."""
        for sentence in split_sentences(text):
            if name in sentence:
                return sentence[:200]
        return ""

    def _collect(self, mentions: list[tuple[str, EntityType]], text: str) -> list[Entity]:
        """Fold raw mentions into entities with frequencies."""
        entities: dict[str, Entity] = {}
        for name, entity_type in mentions:
            key = normalize_name(name)
            if not key:
                continue
            if key in entities:
                entities[key].frequency += 1
                continue
            entities[key] = Entity(
                name=name,
                entity_type=entity_type,
                description=self._describe(name, text),
            )
        return list(entities.values())


class PatternEntityExtractor(EntityExtractor):
    """
    Rule-based extractor.

    Finds emails, money amounts, percentages, dates and capitalised
    names. Names are typed from title prefixes, organisation and place
    suffixes, and the word in front of them. Everything else is a CONCEPT.
    """

    PATTERNS: list[tuple[EntityType, str]] = [
        (EntityType.EMAIL, r"\b[\w.+-]+@[\w-]+(?:\.[\w-]+)+\b"),
        (
            EntityType.MONEY,
            r"[$€£]\s?\d[\d,]*(?:\.\d+)?(?:\s*(?:thousand|million|billion|trillion|[KMB])\b)?",
        ),
        (EntityType.PERCENT, r"\b\d+(?:\.\d+)?\s?%"),
        (
            EntityType.DATE,
            r"\b(?:(?:January|February|March|April|May|June|July|August|September|"
            r"October|November|December)\s+(?:\d{1,2},?\s+)?(?:19|20)\d{2}"
            r"|Q[1-4]\s+(?:19|20)\d{2}|(?:19|20)\d{2})\b",
        ),
        (
            EntityType.CONCEPT,
            r"\b[A-Z][\w'’&-]*[A-Za-z0-9](?:\s+(?:(?:of|for|de|&)\s+)?[A-Z][\w'’&-]*[A-Za-z0-9])*",
        ),
    ]

    ORGANIZATION_SUFFIXES = frozenset({
        "inc", "corp", "corporation", "ltd", "llc", "plc", "gmbh", "company", "co",
        "group", "bank", "university", "institute", "foundation", "association",
        "agency", "ministry", "department", "council", "commission", "committee",
        "labs", "technologies", "systems", "partners", "holdings", "ventures",
    })
    LOCATION_SUFFIXES = frozenset({
        "city", "county", "river", "mountain", "mountains", "street", "island",
        "islands", "republic", "kingdom", "states", "province", "valley", "lake",
    })
    PERSON_TITLES = frozenset({"mr", "mrs", "ms", "dr", "prof", "sir", "dame"})
    PERSON_CUES = frozenset({"said", "says", "told", "wrote", "who"})
    LOCATION_CUES = frozenset({"in", "near", "across", "throughout"})
    IGNORED_WORDS = frozenset({
        "january", "february", "march", "april", "may", "june", "july", "august",
        "september", "october", "november", "december", "monday", "tuesday",
        "wednesday", "thursday", "friday", "saturday", "sunday", "however",
        "therefore", "meanwhile", "moreover", "yes", "ok",
        "mr", "mrs", "ms", "dr", "prof", "sir", "dame",
    })

    def __init__(self, min_name_length: int = 2, **config: Any) -> None:
        super().__init__(**config)
        self.min_name_length = min_name_length
        self._compiled: list[tuple[EntityType, re.Pattern]] = []

    async def initialize(self) -> None:
        if self._initialized:
            return
        self._compiled = [(t, re.compile(p)) for t, p in self.PATTERNS]
        self._initialized = True

    async def extract(self, text: str) -> list[Entity]:
        if not self._initialized:
            await self.initialize()

        if not text or not text.strip():
            return []

        taken: list[tuple[int, int]] = []
        mentions: list[tuple[int, str, EntityType]] = []

        for entity_type, pattern in self._compiled:
            for match in pattern.finditer(text):
                start, end = match.span()
                if any(start < t_end and end > t_start for t_start, t_end in taken):
                    continue

                name = match.group().strip()
                mention_type = entity_type
                if entity_type == EntityType.CONCEPT:
                    cleaned = self._clean_name(name)
                    if cleaned is None:
                        continue
                    dropped = name.split()[: len(name.split()) - len(cleaned.split())]
                    preceding = " ".join([text[:start], *dropped])
                    name = cleaned
                    mention_type = self._classify_name(name, preceding, text[end:])

                taken.append((start, end))
                mentions.append((start, name, mention_type))

        mentions.sort(key=lambda m: m[0])
        return self._collect([(name, etype) for _, name, etype in mentions], text)

    def _clean_name(self, name: str) -> str | None:
        """Strip leading function words; drop names that are only noise."""
        words = name.split()
        while words and words[0].lower() in STOPWORDS:
            words.pop(0)
        if not words:
            return None
        cleaned = " ".join(words)
        if len(cleaned) < self.min_name_length:
            return None
        if len(words) == 1 and cleaned.lower() in self.IGNORED_WORDS:
            return None
        return cleaned

    def _classify_name(self, name: str, preceding: str, following: str) -> EntityType:
        words = [w.lower() for w in name.split()]
        before = [
            w.lower() for w in re.findall(r"[A-Za-z]+", preceding[-40:])
            if w.lower() not in {"the", "a", "an"}
        ]
        previous = before[-1] if before else ""
        after = re.findall(r"[A-Za-z]+", following[:20])
        next_word = after[0].lower() if after else ""

        if words[-1] in self.ORGANIZATION_SUFFIXES:
            return EntityType.ORGANIZATION
        if words[-1] in self.LOCATION_SUFFIXES:
            return EntityType.LOCATION
        if previous in self.PERSON_TITLES:
            return EntityType.PERSON
        if next_word in self.PERSON_CUES and len(words) >= 2:
            return EntityType.PERSON
        if previous in self.LOCATION_CUES and len(words) <= 2:
            return EntityType.LOCATION
        return EntityType.CONCEPT


class SpaCyEntityExtractor(EntityExtractor):
    """NER extractor using spaCy."""

    LABEL_MAP = {
        "PERSON": EntityType.PERSON,
        "ORG": EntityType.ORGANIZATION,
        "GPE": EntityType.LOCATION,
        "LOC": EntityType.LOCATION,
        "FAC": EntityType.LOCATION,
        "DATE": EntityType.DATE,
        "MONEY": EntityType.MONEY,
        "PERCENT": EntityType.PERCENT,
        "NORP": EntityType.CONCEPT,
        "PRODUCT": EntityType.CONCEPT,
        "EVENT": EntityType.CONCEPT,
        "LAW": EntityType.CONCEPT,
        "WORK_OF_ART": EntityType.CONCEPT,
    }

    def __init__(self, model_name: str = "en_core_web_sm", **config: Any) -> None:
        super().__init__(**config)
        self.model_name = model_name
        self._nlp = None

    async def initialize(self) -> None:
        """Load spaCy model."""
        if self._initialized:
            return

        try:
            import spacy

            self._nlp = spacy.load(self.model_name)
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load spaCy model {self.model_name}: {e}",
                details={"model": self.model_name},
                cause=e,
            )

        self._initialized = True
        self.logger.info("spaCy model loaded", model=self.model_name)

    async def extract(self, text: str) -> list[Entity]:
        if not self._initialized:
            await self.initialize()

        if not text or not text.strip():
            return []

        try:
            doc = self._nlp(text)
        except Exception as e:
            raise GraphError(f"NER extraction failed: {e}", cause=e)

        mentions = [
            (ent.text.strip(), self.LABEL_MAP[ent.label_])
            for ent in doc.ents
            if ent.label_ in self.LABEL_MAP and ent.text.strip()
        ]
        return self._collect(mentions, text)


def create_extractor(backend: str = "pattern", **config: Any) -> EntityExtractor:
    """Build the configured entity extractor."""
    if backend == "pattern":
        return PatternEntityExtractor(**config)
    if backend == "spacy":
        return SpaCyEntityExtractor(**config)
    raise ConfigurationError(
        f"Unknown entity extractor: {backend}",
        details={"backend": backend},
    )
