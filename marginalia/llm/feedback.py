"""AI feedback on a submission, written by a chat model."""

from __future__ import annotations

import json
import logging
import re
import time
import typing as t

import jinja2
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from marginalia.errors import FeedbackGenerationFailed
from marginalia.model import AssignmentCategory, BaseModel, Difficulty, SubmissionKind, Subscores

logger = logging.getLogger(__name__)


class FeedbackRequest(BaseModel):
    assignment_code: str
    assignment_title: str
    requirements: list[str] = []
    recommendations: list[str] = []
    category: AssignmentCategory = AssignmentCategory.Programming
    difficulty: Difficulty = Difficulty.Intermediate
    kind: SubmissionKind
    content: str
    reference: str | None = None
    title: str | None = None


class ModelInfo(BaseModel):
    model: str
    tokens_used: int | None = None


class FeedbackResponse(BaseModel):
    score: int
    subscores: Subscores
    content: str
    model_info: ModelInfo
    timing_ms: int


class FeedbackGenerator(t.Protocol):
    async def generate_feedback(self, request: FeedbackRequest) -> FeedbackResponse:
        """
        Raises:
            FeedbackGenerationFailed: if no usable feedback came back
        """
        ...


def clamp_score(value: t.Any) -> int:
    """
    >>> clamp_score("104.6"), clamp_score(-3), clamp_score(71.5)
    (100, 0, 72)
    """
    return max(0, min(100, int(float(value) + 0.5)))


def _get_content_str(content: str | list[str | dict[str, t.Any]]) -> str:
    """Flatten LangChain message content, which may be a list of parts."""
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for item in content:
        if isinstance(item, str):
            parts.append(item)
        elif item.get("type") == "text":
            parts.append(item.get("text", ""))
    return "".join(parts)


def _extract_json_from_response(text: str) -> dict[str, t.Any] | None:
    """Find a JSON object in a response that wraps it in prose or a code fence."""
    if fenced := re.search(r"```(?:json)?\s*(\{.*?\})\s*```", text, re.DOTALL):
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError:
            pass

    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            pass
    return None


def parse_feedback(text: str) -> tuple[int, Subscores, str]:
    """Read score, subscores and feedback text out of the model's reply.

    Scores are clamped to 0-100; a missing subscore takes the overall score.

    Raises:
        FeedbackGenerationFailed
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = _extract_json_from_response(text)
    if not isinstance(parsed, dict):
        raise FeedbackGenerationFailed("the model's reply did not contain a JSON object", reply=text[:500])

    try:
        score = clamp_score(parsed["score"])
        raw = parsed.get("subscores") or {}
        subscores = Subscores(**{
            name: clamp_score(raw.get(name, score)) for name in Subscores.model_fields
        })
    except (KeyError, TypeError, ValueError) as e:
        raise FeedbackGenerationFailed(f"the model's reply has no usable scores: {e}", reply=text[:500]) from e

    content = parsed.get("feedback")
    if not isinstance(content, str) or not content.strip():
        raise FeedbackGenerationFailed("the model's reply has no feedback text", reply=text[:500])
    return score, subscores, content.strip()


class LLMFeedbackGenerator(object):
    template_name: t.ClassVar[str] = "feedback/generate_feedback.j2"
    # categories without a reviewer persona of their own are reviewed as programming
    fallback_category: t.ClassVar[AssignmentCategory] = AssignmentCategory.Programming

    def __init__(
        self,
        model: BaseChatModel,
        env: jinja2.Environment,
        model_name: str | None = None,
        max_input_chars: int = 120_000,
    ) -> None:
        self.model = model
        self.env = env
        self.model_name = model_name or getattr(model, "model_name", None) or type(model).__name__
        self.max_input_chars = max_input_chars

    def system_template(self, category: AssignmentCategory) -> jinja2.Template:
        return self.env.select_template([
            f"feedback/system/{category.value}.j2",
            f"feedback/system/{self.fallback_category.value}.j2",
        ])

    def render_system(self, request: FeedbackRequest) -> str:
        return self.system_template(request.category).render(request=request)

    def render(self, request: FeedbackRequest) -> str:
        content = request.content
        truncated = len(content) > self.max_input_chars
        if truncated:
            content = content[: self.max_input_chars]
        template = self.env.get_template(self.template_name)
        return template.render(request=request, content=content, truncated=truncated)

    async def generate_feedback(self, request: FeedbackRequest) -> FeedbackResponse:
        messages = [SystemMessage(content=self.render_system(request)), HumanMessage(content=self.render(request))]
        start = time.monotonic()
        response = await self.model.ainvoke(messages)
        elapsed = round((time.monotonic() - start) * 1000)

        score, subscores, content = parse_feedback(_get_content_str(response.content))

        usage = getattr(response, "usage_metadata", None) or {}
        model = (getattr(response, "response_metadata", None) or {}).get("model_name") or self.model_name
        logger.debug(
            "generated feedback",
            extra={
                "assignment_code": request.assignment_code,
                "category": request.category.value,
                "model": model,
                "score": score,
                "elapsed_ms": elapsed,
            },
        )
        return FeedbackResponse(
            score=score,
            subscores=subscores,
            content=content,
            model_info=ModelInfo(model=model, tokens_used=usage.get("total_tokens")),
            timing_ms=elapsed,
        )
