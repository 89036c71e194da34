"""Multi-variant post generation: insights -> tone variations -> scoring -> selection."""
import json
import logging
import time
from dataclasses import dataclass, field
from textwrap import dedent
from typing import Any, Dict, List, Optional

from meetpost.config import settings
from meetpost.errors import ExternalServiceError
from meetpost.services.llm_client import LLMClient, clip_transcript, parse_json_object

logger = logging.getLogger(__name__)

BASE_TONES = ("professional", "conversational", "educational")

# Scoring weights. Arbitrary heuristics kept stable so scores stay comparable.
SENTIMENT_POINTS = {"positive": 30, "neutral": 20}
SENTIMENT_FALLBACK_POINTS = 10
ENGAGEMENT_POINTS = {"high": 25, "medium": 15}
ENGAGEMENT_FALLBACK_POINTS = 5
READABILITY_WEIGHT = 0.2
REACH_WEIGHT = 0.25
MAX_SCORE = 100.0

ALTERNATIVES_KEPT = 2

PLATFORM_PROFILES: Dict[str, Dict[str, Any]] = {
    "linkedin": {"max_length": 3000, "hashtags": 3, "call_to_action": True},
    "facebook": {"max_length": 2000, "hashtags": 2, "call_to_action": True},
    "twitter": {"max_length": 280, "hashtags": 2, "call_to_action": False},
    "instagram": {"max_length": 2200, "hashtags": 10, "call_to_action": True},
}


@dataclass
class ContentGenerationConfig:
    platform: str = "linkedin"
    instructions: str = ""
    example: Optional[str] = None
    brand_voice: Optional[str] = None
    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 300
    presence_penalty: float = 0.0
    frequency_penalty: float = 0.0

    @property
    def model_name(self) -> str:
        return self.model or settings.llm_model


@dataclass
class ContentAnalysis:
    sentiment: str = "neutral"
    engagement: str = "low"
    readability: float = 0.0
    estimated_reach: float = 0.0
    keywords: List[str] = field(default_factory=list)
    hashtags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentAnalysis":
        return cls(
            sentiment=str(data.get("sentiment", "")).strip().lower(),
            engagement=str(data.get("engagement", "")).strip().lower(),
            readability=_clamp_pct(data.get("readability")),
            estimated_reach=_clamp_pct(data.get("estimatedReach", data.get("estimated_reach"))),
            keywords=[str(k) for k in data.get("keywords") or [] if k],
            hashtags=[str(h) for h in data.get("hashtags") or [] if h],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.sentiment,
            "engagement": self.engagement,
            "readability": self.readability,
            "estimatedReach": self.estimated_reach,
            "keywords": self.keywords,
            "hashtags": self.hashtags,
        }


@dataclass
class ScoredVariation:
    tone: str
    content: str
    analysis: ContentAnalysis
    score: float


@dataclass
class GeneratedContent:
    content: str
    analysis: ContentAnalysis
    alternatives: List[str]
    metadata: Dict[str, Any]


def _clamp_pct(value: Any) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, v))


def score_analysis(analysis: ContentAnalysis) -> float:
    score = float(SENTIMENT_POINTS.get(analysis.sentiment, SENTIMENT_FALLBACK_POINTS))
    score += ENGAGEMENT_POINTS.get(analysis.engagement, ENGAGEMENT_FALLBACK_POINTS)
    score += analysis.readability * READABILITY_WEIGHT
    score += analysis.estimated_reach * REACH_WEIGHT
    return min(MAX_SCORE, score)


def rank_variations(variations: List[ScoredVariation]) -> List[ScoredVariation]:
    # stable: equal scores keep generation order
    return sorted(variations, key=lambda v: v.score, reverse=True)


def build_insights_prompt(transcript: str, meeting_title: str) -> str:
    return dedent(f'''
    Analyze this meeting transcript and extract key insights for social media content.

    Meeting title: {meeting_title}

    Transcript:
    {clip_transcript(transcript)}

    Respond with a single JSON object with these keys:
    "topics", "decisions", "actionItems", "painPoints", "valueDelivered",
    "industryInsights", "tone", "socialAngles".
    ''').strip()


def build_variation_prompt(
    meeting_title: str,
    insights: Dict[str, Any],
    tone: str,
    config: ContentGenerationConfig,
) -> str:
    profile = PLATFORM_PROFILES.get(config.platform, PLATFORM_PROFILES["linkedin"])
    lines = [
        f"Write a {config.platform} post about the meeting \"{meeting_title}\".",
        "",
        "Meeting insights:",
        json.dumps(insights, indent=2, ensure_ascii=False) if insights else "(none extracted)",
        "",
        "Requirements:",
        f"- Tone: {tone}",
        f"- At most {profile['max_length']} characters",
        f"- At most {profile['hashtags']} relevant hashtags",
        "- End with a call to action" if profile["call_to_action"] else "- No call to action",
        "- Focus on the value delivered; never invent facts that are not in the insights",
    ]
    if config.instructions:
        lines.append(f"- Follow these instructions exactly: {config.instructions}")
    if config.example:
        lines += ["", "Example of the desired output:", config.example]
    lines += ["", "Return only the post text."]
    return "\n".join(lines)


def build_analysis_prompt(content: str) -> str:
    return dedent(f'''
    Analyze this social media post for quality and engagement potential:

    {content}

    Respond with a single JSON object:
    {{"sentiment": "positive|neutral|negative", "engagement": "high|medium|low",
      "readability": 0-100, "keywords": ["..."], "hashtags": ["#..."], "estimatedReach": 0-100}}
    ''').strip()


class ContentGenerator:
    def __init__(self, llm: LLMClient):
        self.llm = llm

    def generate(self, transcript: str, meeting_title: str, config: ContentGenerationConfig) -> GeneratedContent:
        if not transcript or not transcript.strip():
            raise ValueError("transcript must be non-empty")
        started = time.monotonic()

        insights = self.extract_insights(transcript, meeting_title)
        variations = self.generate_variations(meeting_title, insights, config)
        ranked = rank_variations([self.score_variation(tone, text) for tone, text in variations])

        best = ranked[0]
        alternatives = [v.content for v in ranked[1:1 + ALTERNATIVES_KEPT]]
        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Generated %d variations for %r on %s; picked %s (score %.1f) in %d ms",
            len(ranked), meeting_title, config.platform, best.tone, best.score, elapsed_ms,
        )
        return GeneratedContent(
            content=best.content,
            analysis=best.analysis,
            alternatives=alternatives,
            metadata={
                "generationTime": elapsed_ms,
                "model": config.model_name,
                "insights": insights,
                "variationsGenerated": len(ranked),
                "tone": best.tone,
                "score": best.score,
            },
        )

    def extract_insights(self, transcript: str, meeting_title: str) -> Dict[str, Any]:
        raw = self.llm.complete(
            build_insights_prompt(transcript, meeting_title),
            model=settings.llm_analysis_model,
            temperature=0.3,
            max_tokens=1000,
        )
        insights = parse_json_object(raw)
        if insights is None:
            logger.warning("Insight extraction returned non-JSON output; continuing without insights")
            return {}
        return insights

    def tones_for(self, config: ContentGenerationConfig) -> List[str]:
        tones = list(BASE_TONES)
        voice = (config.brand_voice or "").strip()
        if voice and voice.lower() not in tones:
            tones.append(voice)
        return tones

    def generate_variations(
        self, meeting_title: str, insights: Dict[str, Any], config: ContentGenerationConfig
    ) -> List[tuple]:
        out = []
        for tone in self.tones_for(config):
            text = self.llm.complete(
                build_variation_prompt(meeting_title, insights, tone, config),
                model=config.model_name,
                temperature=config.temperature,
                max_tokens=config.max_tokens,
                presence_penalty=config.presence_penalty,
                frequency_penalty=config.frequency_penalty,
            )
            if text.strip():
                out.append((tone, text.strip()))
            else:
                logger.warning("Empty %s variation dropped", tone)
        if not out:
            raise ExternalServiceError(LLMClient.service, "model returned no post content")
        return out

    def score_variation(self, tone: str, content: str) -> ScoredVariation:
        raw = self.llm.complete(
            build_analysis_prompt(content),
            model=settings.llm_analysis_model,
            temperature=0.1,
            max_tokens=500,
        )
        data = parse_json_object(raw)
        if data is None:
            raise ExternalServiceError(LLMClient.service, "content analysis was not valid JSON")
        analysis = ContentAnalysis.from_dict(data)
        return ScoredVariation(tone=tone, content=content, analysis=analysis, score=score_analysis(analysis))
