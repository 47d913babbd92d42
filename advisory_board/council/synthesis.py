"""Stage 2: Synthesize a consensus report from a batch of advisor responses.

The synthesis is a pure text transformation over the responses: infer each
advisor's domain, pull key insights, detect themes shared by several advisors,
describe each advisor's angle and compose a recommendation.
"""

import asyncio
import math
import logging
from typing import List, Tuple, Optional

from ..errors import ConsultationError, ErrorKind, SUMMARY_ADVISOR_ID
from ..models import AdvisorResponse
from .utils import split_sentences

logger = logging.getLogger(__name__)

GENERAL_DOMAIN = "General Advisory"

# (label, expertise keywords, perspective description); first match wins
EXPERTISE_FAMILIES: List[Tuple[str, List[str], str]] = [
    (
        "Clinical Research",
        ["clinical", "regulatory", "trial"],
        "brought regulatory and clinical trial expertise, emphasizing compliance and safety protocols",
    ),
    (
        "Education",
        ["education", "pedagogy", "curriculum"],
        "provided educational reform insights, focusing on equity and evidence-based pedagogical approaches",
    ),
    (
        "Natural Remedies",
        ["traditional", "holistic", "natural"],
        "offered traditional medicine wisdom, emphasizing holistic and natural healing approaches",
    ),
    (
        "Product Development",
        ["product", "design", "engineering", "marketing", "growth"],
        "contributed product and market insights, focusing on customer value and execution",
    ),
]

INSIGHT_MARKERS = ["recommend", "important", "key", "critical", "essential", "should", "must"]

THEME_WORDS = [
    "safety", "evidence", "approach", "consider", "implementation", "research",
    "practice", "patient", "student", "holistic", "regulatory", "clinical",
    "compliance", "guidelines", "protocols",
]

MIN_INSIGHT_LENGTH = 20
INSIGHT_PREFIX_LENGTH = 30
MAX_INSIGHTS = 5
MAX_THEMES = 3


def infer_domain(expertise: str) -> str:
    """Map an expertise label to a human-readable domain."""
    lowered = expertise.lower()
    for label, keywords, _ in EXPERTISE_FAMILIES:
        if any(k in lowered for k in keywords):
            return label
    return GENERAL_DOMAIN


def extract_key_insights(responses: List[AdvisorResponse]) -> List[str]:
    insights: List[str] = []
    for response in responses:
        sentences = split_sentences(response.content, min_length=MIN_INSIGHT_LENGTH)
        candidates = [
            s for s in sentences
            if any(marker in s.lower() for marker in INSIGHT_MARKERS)
        ]
        if not candidates:
            continue
        insight = candidates[0]
        prefix = insight[:INSIGHT_PREFIX_LENGTH]
        if any(prefix in existing for existing in insights):
            continue
        insights.append(f"{response.persona.name}: {insight}")
    return insights[:MAX_INSIGHTS]


def find_common_themes(responses: List[AdvisorResponse]) -> List[str]:
    contents = [(r.persona.name, r.content.lower()) for r in responses]
    users_by_word = {
        word: [name for name, content in contents if word in content]
        for word in THEME_WORDS
    }

    def themes_with(min_advisors: int) -> List[str]:
        return [
            f"Multiple advisors ({', '.join(names)}) emphasized the importance of "
            f"{word}-focused considerations"
            for word, names in users_by_word.items()
            if len(names) >= min_advisors
        ]

    themes = themes_with(max(2, math.ceil(len(responses) / 2)))
    if not themes:
        themes = themes_with(2)
    return themes[:MAX_THEMES]


def identify_unique_perspectives(responses: List[AdvisorResponse]) -> List[str]:
    perspectives = []
    for response in responses:
        expertise = response.persona.expertise.lower()
        name = response.persona.name
        for _, keywords, description in EXPERTISE_FAMILIES:
            if any(k in expertise for k in keywords):
                perspectives.append(f"{name} {description}")
                break
        else:
            perspectives.append(
                f"{name} contributed specialized insights from their "
                f"{response.persona.expertise} background"
            )
    return perspectives


def compose_recommendation(domains: List[str]) -> str:
    if len(domains) == 1:
        return (
            f"Based on the {domains[0]} expertise consulted, a focused approach within this "
            f"domain is recommended. Consider implementing the suggested strategies while "
            f"maintaining alignment with domain-specific best practices."
        )
    if len(domains) == 2:
        return (
            f"The multi-domain perspective from {domains[0]} and {domains[1]} provides "
            f"valuable complementary insights. Consider an integrated approach that balances "
            f"the recommendations from both domains while addressing any potential conflicts "
            f"between different methodologies."
        )
    return (
        f"The comprehensive multi-domain consultation across {', '.join(domains)} offers a "
        f"holistic view of the challenge. Consider developing a phased implementation "
        f"strategy that incorporates insights from all domains, starting with areas of "
        f"consensus and gradually addressing domain-specific considerations."
    )


def _numbered(title: str, items: List[str]) -> str:
    lines = [f"**{title}:**"]
    lines.extend(f"{i}. {item}" for i, item in enumerate(items, start=1))
    return "\n".join(lines) + "\n\n"


class SummarySynthesizer:
    """Turns a completed batch of advisor responses into a summary document.

    `latency_ms` simulates the processing delay of a remote summarizer and
    `timeout_ms` bounds it; both default to instant/unbounded.
    """

    def __init__(self, latency_ms: int = 0, timeout_ms: Optional[int] = None):
        self.latency_ms = latency_ms
        self.timeout_ms = timeout_ms

    def synthesize(self, responses: List[AdvisorResponse], original_prompt: str) -> str:
        if not responses:
            raise ConsultationError(
                "Cannot generate summary: no responses provided",
                SUMMARY_ADVISOR_ID,
                ErrorKind.PERSONA_ERROR,
            )

        if len(responses) == 1:
            persona = responses[0].persona
            return (
                f"**Single Advisor Summary**\n\n"
                f"{persona.name} provided insights based on their expertise in "
                f"{persona.expertise}. Their response emphasized the importance of "
                f"considering this question from their specialized perspective."
            )

        names = [r.persona.name for r in responses]
        domains: List[str] = []
        for r in responses:
            domain = infer_domain(r.persona.expertise)
            if domain not in domains:
                domains.append(domain)

        themes = find_common_themes(responses)
        insights = extract_key_insights(responses)
        perspectives = identify_unique_perspectives(responses)

        summary = "**Advisory Board Summary**\n\n"
        summary += f"**Question:** {original_prompt}\n\n"
        summary += f"**Advisors Consulted:** {', '.join(names)}\n"
        summary += f"**Domains Represented:** {', '.join(domains)}\n\n"
        if themes:
            summary += _numbered("Consensus Points", themes)
        if insights:
            summary += _numbered("Key Insights", insights)
        if perspectives:
            summary += _numbered("Unique Perspectives", perspectives)
        summary += "**Recommendation:**\n"
        summary += compose_recommendation(domains)
        return summary

    async def _synthesize_later(self, responses: List[AdvisorResponse], original_prompt: str) -> str:
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)
        return self.synthesize(responses, original_prompt)

    async def summarize(self, responses: List[AdvisorResponse], original_prompt: str) -> str:
        if not responses:
            # Fail before any simulated latency
            return self.synthesize(responses, original_prompt)

        logger.info("Summarizing %d advisor responses", len(responses))
        try:
            if self.timeout_ms:
                return await asyncio.wait_for(
                    self._synthesize_later(responses, original_prompt),
                    timeout=self.timeout_ms / 1000,
                )
            return await self._synthesize_later(responses, original_prompt)
        except asyncio.TimeoutError:
            raise ConsultationError(
                "Timeout while generating response summary",
                SUMMARY_ADVISOR_ID,
                ErrorKind.TIMEOUT,
            ) from None
