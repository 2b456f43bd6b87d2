"""Text helpers shared by the chunker, the embedders and the verifier."""

import hashlib
import re

_TOKEN = re.compile(r"[a-z0-9]+(?:[.,][0-9]+)*", re.IGNORECASE)
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+(?=[\"'(\[]?[A-Z0-9])")
_NUMBER = re.compile(r"^\d+(?:[.,]\d+)*$")

STOPWORDS = frozenset(
    """
    a an and are as at be been being but by can could did do does for from had
    has have he her his how i if in into is it its itself me my no nor not of
    on or our she should so such than that the their them then there these they
    this those to too us very was we were what when where which while who whom
    why will with would you your about after again all also am any because
    before between both down during each few further here just more most off
    once only other out over own same some through under until up
    """.split()
)

NEGATIONS = frozenset(
    {"not", "no", "never", "none", "nobody", "nothing", "neither", "nor", "cannot",
     "without", "isn't", "wasn't", "aren't", "weren't", "doesn't", "didn't",
     "don't", "won't", "hasn't", "haven't", "hadn't", "n't"}
)


def tokenize(text: str) -> list[str]:
    """Lower-cased word and number tokens."""
    return [t.lower() for t in _TOKEN.findall(text or "")]


def content_tokens(text: str) -> list[str]:
    """Tokens with stopwords removed."""
    return [t for t in tokenize(text) if t not in STOPWORDS]


def is_number(token: str) -> bool:
    return bool(_NUMBER.match(token))


def has_negation(text: str) -> bool:
    lowered = (text or "").lower()
    words = re.findall(r"[a-z']+", lowered)
    return any(w in NEGATIONS or w.endswith("n't") for w in words)


def split_sentences(text: str) -> list[str]:
    """Split text into sentences on terminal punctuation and blank lines."""
    sentences = []
    for block in re.split(r"\n\s*\n", text or ""):
        block = " ".join(block.split())
        if not block:
            continue
        sentences.extend(s.strip() for s in _SENTENCE_END.split(block) if s.strip())
    return sentences


def content_hash(text: str) -> str:
    """Stable hash of whitespace- and case-normalized text."""
    normalized = " ".join((text or "").lower().split())
    return hashlib.md5(normalized.encode("utf-8")).hexdigest()
