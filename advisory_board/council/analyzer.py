"""Stage 0: Lexicon-based question analysis.

Classifies a question before it is dispatched: domain, question type, keywords,
confidence, complexity, sentiment and urgency. Everything here is a deterministic
heuristic over fixed word lists; it never raises.
"""

import re
from dataclasses import replace
from typing import List, Dict, Optional, Tuple

from ..models import QuestionAnalysis, QuestionContext
from .utils import tokenize, significant_tokens, is_stop_word, normalize_text

MULTI_DOMAIN = "multi-domain"

DOMAIN_KEYWORDS: Dict[str, List[str]] = {
    "productboard": [
        "product", "feature", "roadmap", "user", "market", "launch", "mvp", "prototype",
        "customer", "feedback", "analytics", "metrics", "kpi", "growth", "monetization",
        "pricing", "competition", "positioning", "brand", "marketing", "sales", "business",
    ],
    "cliniboard": [
        "clinical", "trial", "patient", "treatment", "therapy", "drug", "medication",
        "diagnosis", "symptom", "disease", "medical", "healthcare", "regulatory",
        "fda", "approval", "safety", "efficacy", "protocol", "research", "study",
    ],
    "eduboard": [
        "education", "learning", "curriculum", "student", "teacher", "course",
        "assessment", "pedagogy", "instruction", "classroom", "online", "elearning",
        "training", "skill", "knowledge", "academic", "university", "school",
    ],
    "remediboard": [
        "natural", "holistic", "alternative", "herbal", "supplement", "wellness",
        "nutrition", "lifestyle", "prevention", "traditional", "chinese", "medicine",
        "acupuncture", "naturopathic", "homeopathic", "organic", "detox", "healing",
    ],
}

# Ordered: the first rule with a trigger present wins
QUESTION_TYPE_RULES: List[Tuple[str, List[str]]] = [
    ("product_ideation", [
        "idea", "ideas", "concept", "innovation", "create", "develop", "design", "build",
        "new", "novel", "unique", "brainstorm", "ideate", "invent",
    ]),
    ("strategy", [
        "strategy", "strategic", "plan", "approach", "framework", "methodology", "roadmap",
        "direction", "goal", "objective", "vision", "mission", "competitive",
    ]),
    ("technical", [
        "technical", "implementation", "implement", "architecture", "system", "technology",
        "code", "software", "hardware", "integration", "api", "database", "how to",
    ]),
    ("clinical", [
        "clinical", "medical", "patient", "treatment", "diagnosis", "therapeutic",
        "protocol", "trial", "study", "efficacy",
    ]),
    ("educational", [
        "educational", "learning", "teaching", "curriculum", "instruction",
        "assessment", "pedagogy", "academic", "training", "skill",
    ]),
    ("remedial", [
        "remedial", "alternative", "natural", "holistic", "wellness", "prevention",
        "lifestyle", "nutrition", "supplement", "traditional",
    ]),
]
DEFAULT_TYPE = "general"

URGENCY_WORDS = frozenset([
    "urgent", "urgently", "asap", "immediate", "immediately", "emergency",
    "deadline", "rush", "quickly",
])

COMPLEXITY_MARKERS = [
    "complex", "complicated", "sophisticated", "advanced", "comprehensive",
    "detailed", "in-depth", "thorough", "extensive", "multi-faceted",
]

POSITIVE_WORDS = frozenset([
    "good", "great", "excellent", "amazing", "wonderful", "fantastic",
    "love", "like", "enjoy", "excited", "optimistic", "confident",
])
NEGATIVE_WORDS = frozenset([
    "bad", "terrible", "awful", "hate", "dislike", "worried", "concerned",
    "frustrated", "disappointed", "problem", "issue", "challenge",
])

FOLLOW_UP_INDICATORS = [
    "also", "additionally", "furthermore", "moreover", "building on",
    "following up", "related to", "in addition", "another question",
    "what about", "how about", "can you also",
]

MAX_KEYWORDS = 10
MAX_RELATED_TOPICS = 5
LOW_COMPLEXITY_WORDS = 12
HIGH_COMPLEXITY_WORDS = 25
MIN_CONFIDENT_WORDS = 8

_ALL_DOMAIN_WORDS = frozenset(w for words in DOMAIN_KEYWORDS.values() for w in words)
_CAPS_EMPHASIS = re.compile(r"\b[A-Z]{4,}\b")


class QuestionAnalyzer:
    """Deterministic question classifier.

    Stateless: the only carried state is whatever QuestionContext the caller
    passes in, which is copied, never mutated.
    """

    def analyze(self, question: str, context: Optional[QuestionContext] = None) -> QuestionAnalysis:
        question = question or ""
        tokens = tokenize(question)
        keywords = self.extract_keywords(question)
        domain, domain_hits = self.identify_domain(tokens)
        question_type = self.categorize(keywords, question)

        return QuestionAnalysis(
            type=question_type,
            domain=domain,
            keywords=keywords,
            confidence=self.confidence(tokens, domain, domain_hits, question_type),
            complexity=self.complexity(question),
            sentiment=self.sentiment(tokens),
            urgency=self.urgency(question),
            context=self.enhance_context(question, keywords, context) if context is not None else None,
        )

    # ---- keywords & domain ----

    def extract_keywords(self, question: str) -> List[str]:
        """Significant tokens, domain-dictionary words first, capped at MAX_KEYWORDS."""
        candidates = significant_tokens(question)
        # sorted() is stable, so each group keeps its order of appearance
        ranked = sorted(candidates, key=lambda word: word not in _ALL_DOMAIN_WORDS)
        return ranked[:MAX_KEYWORDS]

    def domain_scores(self, tokens: List[str]) -> Dict[str, int]:
        return {
            domain: sum(1 for t in tokens if t in words)
            for domain, words in DOMAIN_KEYWORDS.items()
        }

    def identify_domain(self, tokens: List[str]) -> Tuple[str, int]:
        """Return (domain, total dictionary hits).

        A domain wins only when it is the sole domain with a nonzero score;
        ties, mixed hits and no hits all resolve to multi-domain.
        """
        scores = self.domain_scores(tokens)
        scored = {d: s for d, s in scores.items() if s > 0}
        total = sum(scored.values())
        if len(scored) == 1:
            return next(iter(scored)), total
        return MULTI_DOMAIN, total

    # ---- type ----

    def categorize(self, keywords: List[str], question: str) -> str:
        keyword_set = set(keywords)
        normalized = normalize_text(question)
        token_set = set(normalized.split(" ")) if normalized else set()
        padded = f" {normalized} "

        for question_type, triggers in QUESTION_TYPE_RULES:
            for trigger in triggers:
                if " " in trigger:
                    if f" {trigger} " in padded:
                        return question_type
                elif trigger in keyword_set or trigger in token_set:
                    return question_type
        return DEFAULT_TYPE

    # ---- scores ----

    def confidence(self, tokens: List[str], domain: str, domain_hits: int, question_type: str) -> float:
        confidence = 0.3
        confidence += min(domain_hits * 0.08, 0.25)
        if domain != MULTI_DOMAIN:
            confidence += 0.2
        if len(tokens) >= MIN_CONFIDENT_WORDS:
            confidence += 0.1
        if question_type != DEFAULT_TYPE:
            confidence += 0.1
        if len(tokens) < 4 or domain_hits == 0:
            confidence -= 0.15
        return round(max(0.0, min(confidence, 1.0)), 2)

    def complexity(self, question: str) -> str:
        lowered = question.lower()
        word_count = len(question.split())
        markers = sum(1 for marker in COMPLEXITY_MARKERS if marker in lowered)

        if word_count >= HIGH_COMPLEXITY_WORDS or markers >= 2:
            return "high"
        if word_count < LOW_COMPLEXITY_WORDS and markers == 0:
            return "low"
        return "medium"

    def sentiment(self, tokens: List[str]) -> str:
        positive = sum(1 for t in tokens if t in POSITIVE_WORDS)
        negative = sum(1 for t in tokens if t in NEGATIVE_WORDS)
        if positive > negative:
            return "positive"
        if negative > positive:
            return "negative"
        return "neutral"

    def urgency(self, question: str) -> str:
        if any(t in URGENCY_WORDS for t in tokenize(question)):
            return "high"
        if _CAPS_EMPHASIS.search(question):
            return "high"
        if question.count("!") >= 2:
            return "high"
        return "normal"

    # ---- context ----

    def enhance_context(
        self,
        question: str,
        keywords: List[str],
        context: QuestionContext,
    ) -> QuestionContext:
        padded = f" {normalize_text(question)} "
        indicators = list(context.follow_up_indicators)
        for indicator in FOLLOW_UP_INDICATORS:
            if f" {indicator} " in padded and indicator not in indicators:
                indicators.append(indicator)

        related = [
            k for k in keywords
            if len(k) > 4 and not is_stop_word(k) and k not in FOLLOW_UP_INDICATORS
        ][:MAX_RELATED_TOPICS]

        return replace(
            context,
            previous_questions=list(context.previous_questions),
            follow_up_indicators=indicators,
            related_topics=related,
        )


def analyze_question(question: str, context: Optional[QuestionContext] = None) -> QuestionAnalysis:
    return QuestionAnalyzer().analyze(question, context)
