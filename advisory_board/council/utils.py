"""Shared text helpers for the consultation pipeline: tokenizing, sentences, cleanup."""

import re
from typing import List, Iterable


STOP_WORDS = frozenset([
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
    "may", "might", "must", "can", "this", "that", "these", "those",
    "what", "where", "when", "why", "how", "who", "which", "whom",
    "about", "from", "into", "your", "their", "there", "them", "they",
    "some", "than", "then", "very", "just", "also", "more", "most",
    "other", "such", "only", "over", "each", "while", "being",
])

_NON_WORD = re.compile(r"[^\w\s]")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")


# ============== Tokenizing ==============

def normalize_text(text: str) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""
    text = _NON_WORD.sub(" ", text.lower())
    return re.sub(r"\s+", " ", text).strip()


def tokenize(text: str) -> List[str]:
    normalized = normalize_text(text)
    return normalized.split(" ") if normalized else []


def is_stop_word(word: str) -> bool:
    return word.lower() in STOP_WORDS


def significant_tokens(text: str, limit: int = 0) -> List[str]:
    """Distinct non-stop-word tokens longer than 3 characters, in order of appearance."""
    seen = set()
    result = []
    for token in tokenize(text):
        if len(token) <= 3 or token in STOP_WORDS or token in seen:
            continue
        seen.add(token)
        result.append(token)
        if limit and len(result) >= limit:
            break
    return result


def count_matches(tokens: Iterable[str], vocabulary: Iterable[str]) -> int:
    vocab = set(vocabulary)
    return sum(1 for t in tokens if t in vocab)


# ============== Sentences ==============

def split_sentences(text: str, min_length: int = 0) -> List[str]:
    sentences = [s.strip() for s in _SENTENCE_SPLIT.split(text)]
    return [s for s in sentences if s and len(s) > min_length]


# ============== Response Post-Processing ==============

# Hosts models invent when asked for charts or diagrams
PLACEHOLDER_HOSTS = ("via.placeholder.com", "placeholder.", "example.com", "example.org", "placehold.co")

_PLACEHOLDER_IMAGE = re.compile(
    r"!\[[^\]]*\]\(https?://(?:www\.)?(?:"
    + "|".join(re.escape(host) for host in PLACEHOLDER_HOSTS)
    + r")[^)]*\)",
    re.IGNORECASE,
)
_BLANK_RUN = re.compile(r"\n{3,}")


def strip_placeholder_images(text: str) -> str:
    """Drop markdown images that point at placeholder hosts; real image links are kept."""
    text = _PLACEHOLDER_IMAGE.sub("", text)
    return _BLANK_RUN.sub("\n\n", text).strip()
