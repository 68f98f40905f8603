"""
AI summaries for video sources.

The scraped title and description of a video are sent to an AI provider,
which answers with topics, a short summary and key points as JSON.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from newsforge.ai.schemas import AIRequestOptions

if TYPE_CHECKING:
    from newsforge.ai.registry import ProviderRegistry

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You summarize videos from their metadata. Answer with a single JSON object."

PROMPT_TEMPLATE = """Analyze this YouTube video based on its title and description.

Video Title: {title}

Video Description: {description}

Please provide:
1. topics: 3-5 key topics or themes
2. summary: a concise 2-3 sentence summary
3. keyPoints: 3-5 important points

Format as JSON:
{{"topics": ["topic1", "topic2"], "summary": "...", "keyPoints": ["point1", "point2"]}}"""

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class VideoAnalysis:
    topics: list[str] = field(default_factory=list)
    summary: str = ""
    key_points: list[str] = field(default_factory=list)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if str(v).strip()]


def parse_analysis(text: str) -> VideoAnalysis:
    """
    Read the JSON object out of a model reply.

    Models sometimes wrap the object in a markdown fence, so the outermost
    braces are located first. Fields of the wrong type are treated as empty.

    Raises:
        ValueError: If the reply holds no JSON object
    """
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        raise ValueError("No JSON object in analysis reply")

    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Analysis reply is not a JSON object")

    summary = data.get("summary")
    return VideoAnalysis(
        topics=_string_list(data.get("topics")),
        summary=summary.strip() if isinstance(summary, str) else "",
        key_points=_string_list(data.get("keyPoints")),
    )


class VideoAnalyzer:
    """
    Routes video metadata to an AI model through the provider registry.

    Args:
        providers: Registry used to resolve and call the provider
        model_id: Model to request
        provider_id: Explicit provider, or None to resolve by model
        max_tokens: Reply budget
    """

    def __init__(
        self,
        providers: "ProviderRegistry",
        model_id: str,
        provider_id: str | None = None,
        max_tokens: int = 1024,
    ):
        self._providers = providers
        self._model_id = model_id
        self._provider_id = provider_id
        self._max_tokens = max_tokens

    async def analyze(self, title: str, description: str) -> VideoAnalysis:
        """
        Raises:
            ProviderNotFoundError: If no provider serves the model
            ProviderError: If the provider call fails
            ValueError: If the reply is not a JSON object
        """
        options = AIRequestOptions(
            model_id=self._model_id,
            prompt=PROMPT_TEMPLATE.format(title=title, description=description or "(none)"),
            system_prompt=SYSTEM_PROMPT,
            max_tokens=self._max_tokens,
            json_mode=True,
        )
        response = await self._providers.generate(options, provider_id=self._provider_id)
        analysis = parse_analysis(response.content)
        logger.debug(
            f"Video analysis: topics={len(analysis.topics)}, "
            f"summary_chars={len(analysis.summary)}"
        )
        return analysis
