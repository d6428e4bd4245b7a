"""Tests for marginalia.llm.feedback module."""

from __future__ import annotations

import json

import jinja2
import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from marginalia.errors import FeedbackGenerationFailed
from marginalia.llm import FeedbackRequest, LLMFeedbackGenerator
from marginalia.llm.feedback import clamp_score, parse_feedback
from marginalia.model import AssignmentCategory, Difficulty

Reply = {
    "score": 84,
    "subscores": {"requirements_met": 90, "quality": 85, "best_practices": 80, "creativity": 75},
    "feedback": "## Strengths\n\nClean layout.",
}


class TestParseFeedback(object):
    """Tests for parse_feedback()."""

    def test_plain_json(self) -> None:
        score, subscores, content = parse_feedback(json.dumps(Reply))

        assert score == 84
        assert subscores.creativity == 75
        assert content == "## Strengths\n\nClean layout."

    def test_fenced_json_in_prose(self) -> None:
        text = f"Here is my review:\n```json\n{json.dumps(Reply)}\n```\nGood luck!"

        score, _, _ = parse_feedback(text)

        assert score == 84

    def test_bare_object_in_prose(self) -> None:
        score, _, _ = parse_feedback(f"Sure. {json.dumps(Reply)} Hope that helps.")

        assert score == 84

    def test_scores_are_clamped_and_defaulted(self) -> None:
        """Out-of-range scores are clamped; a missing subscore takes the overall score."""
        reply = {"score": 130, "subscores": {"quality": -5, "creativity": "61.6"}, "feedback": "ok"}

        score, subscores, _ = parse_feedback(json.dumps(reply))

        assert score == 100
        assert subscores.quality == 0
        assert subscores.creativity == 62
        assert subscores.requirements_met == 100

    @pytest.mark.parametrize(
        "text",
        [
            "no json here",
            json.dumps({"subscores": {}, "feedback": "x"}),
            json.dumps({"score": "high", "feedback": "x"}),
            json.dumps({"score": 50, "feedback": "   "}),
            json.dumps([1, 2, 3]),
        ],
    )
    def test_unusable_replies(self, text: str) -> None:
        with pytest.raises(FeedbackGenerationFailed):
            parse_feedback(text)

    def test_clamp_score(self) -> None:
        assert clamp_score(99.5) == 100
        assert clamp_score("0") == 0


class TestPrompt(object):
    """Tests for the feedback prompt template."""

    def test_renders_assignment_and_content(
        self, llm_env: jinja2.Environment, feedback_request: FeedbackRequest
    ) -> None:
        generator = LLMFeedbackGenerator(FakeListChatModel(responses=[]), llm_env)

        prompt = generator.render(feedback_request)

        assert 'assignment ABC123: "Personal Portfolio"' in prompt
        assert "Category: programming\nDifficulty: intermediate\n" in prompt
        assert "- Responsive layout\n- At least three projects\n" in prompt
        assert "- Use semantic HTML" in prompt
        assert "Source: https://github.com/ada/portfolio" in prompt
        assert "<main>hi</main>" in prompt
        assert "cut short" not in prompt

    def test_truncates_long_content(self, llm_env: jinja2.Environment, feedback_request: FeedbackRequest) -> None:
        generator = LLMFeedbackGenerator(FakeListChatModel(responses=[]), llm_env, max_input_chars=10)

        prompt = generator.render(feedback_request)

        assert "cut short" in prompt
        assert "## index.h\n" in prompt
        assert "<main>hi</main>" not in prompt

    def test_omits_empty_sections(self, llm_env: jinja2.Environment, feedback_request: FeedbackRequest) -> None:
        generator = LLMFeedbackGenerator(FakeListChatModel(responses=[]), llm_env)
        bare = feedback_request.model_copy(update={"requirements": [], "recommendations": [], "reference": None})

        prompt = generator.render(bare)

        assert "## Requirements" not in prompt
        assert "## Recommendations" not in prompt
        assert "Source:" not in prompt


class TestSystemPrompt(object):
    """Tests for the per-category reviewer prompts."""

    @pytest.mark.parametrize(
        "category, persona",
        [
            (AssignmentCategory.Programming, "programming instructor"),
            (AssignmentCategory.Blog, "technical writing coach"),
            (AssignmentCategory.Algorithm, "algorithms and data structures"),
            (AssignmentCategory.Design, "programming instructor"),
            (AssignmentCategory.Analysis, "programming instructor"),
        ],
    )
    def test_persona_by_category(
        self,
        llm_env: jinja2.Environment,
        feedback_request: FeedbackRequest,
        category: AssignmentCategory,
        persona: str,
    ) -> None:
        """Categories without a prompt of their own get the programming one."""
        generator = LLMFeedbackGenerator(FakeListChatModel(responses=[]), llm_env)

        system = generator.render_system(feedback_request.model_copy(update={"category": category}))

        assert persona in system
        assert system.rstrip().endswith("no markdown formatting around it.")

    def test_difficulty_sets_the_bar(self, llm_env: jinja2.Environment, feedback_request: FeedbackRequest) -> None:
        generator = LLMFeedbackGenerator(FakeListChatModel(responses=[]), llm_env)

        beginner = generator.render_system(feedback_request.model_copy(update={"difficulty": Difficulty.Beginner}))
        advanced = generator.render_system(feedback_request.model_copy(update={"difficulty": Difficulty.Advanced}))
        usual = generator.render_system(feedback_request)

        assert "encouraging" in beginner
        assert "professional standard" in advanced
        assert "encouraging" not in usual and "professional standard" not in usual


@pytest.mark.anyio
class TestLLMFeedbackGenerator(object):
    """Tests for LLMFeedbackGenerator.generate_feedback()."""

    async def test_generate_feedback(self, llm_env: jinja2.Environment, feedback_request: FeedbackRequest) -> None:
        model = FakeListChatModel(responses=[json.dumps(Reply)])
        generator = LLMFeedbackGenerator(model, llm_env, model_name="gpt-test")

        response = await generator.generate_feedback(feedback_request)

        assert response.score == 84
        assert response.subscores.requirements_met == 90
        assert response.content.startswith("## Strengths")
        assert response.model_info.model == "gpt-test"
        assert response.timing_ms >= 0

    async def test_unparseable_reply(self, llm_env: jinja2.Environment, feedback_request: FeedbackRequest) -> None:
        generator = LLMFeedbackGenerator(FakeListChatModel(responses=["I liked it!"]), llm_env)

        with pytest.raises(FeedbackGenerationFailed) as excinfo:
            await generator.generate_feedback(feedback_request)

        assert excinfo.value.kind == "feedback_generation_failed"
        assert excinfo.value.details["reply"] == "I liked it!"
