"""LLM-backed insight generator.

Implements :class:`~feedback360.interfaces.insight_generator.IInsightGenerator`
on top of any :class:`~feedback360.interfaces.llm_provider.ILLMProvider`.

Architecture overview
---------------------
One generator call is a single JSON round trip to the LLM:

  1. PROMPT   -- The system prompt carries the competency framework (names,
                 aspects, 1-5 rubric), the evidence-based confidence rules
                 and the exact output shape.  The user prompt carries the
                 grouped feedback, one block per relationship category.
  2. PARSE    -- JSON is pulled out of the reply (markdown fences or the
                 first ``{...}`` block) and validated into
                 ``RelationshipInsight`` models.  Anything that doesn't fit
                 raises ``InsightParseError``; nothing is repaired silently.
  3. NORMALIZE -- Confidence is recomputed from ``evidence_count`` (the LLM
                 is not trusted to apply the rule), competencies outside the
                 framework are dropped, categories with no feedback are
                 blanked, missing categories are filled in, and the result
                 is ordered senior, peer, junior.

Transport errors (``LLMError``, ``RateLimitError``,
``ProviderUnavailableError``) propagate untouched; the cache coordinator
decides what is retryable.
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from feedback360.interfaces.insight_generator import IInsightGenerator, InsightRequest
from feedback360.interfaces.llm_provider import ILLMProvider
from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.models.insights import (
    CompetencyDefinition,
    CompetencyScore,
    ConfidenceLevel,
    RelationshipInsight,
)
from feedback360.utils.errors import InsightParseError
from feedback360.utils.logging import get_logger

# Regex to extract JSON from an LLM response wrapped in ```json ... ``` fences.
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

# The LLM sometimes echoes an "aggregate" block; the aggregate view is
# derived locally by the aggregation engine, so it is ignored.
_IGNORED_RELATIONSHIPS = frozenset({"aggregate"})

_SYSTEM_PROMPT_TEMPLATE = """\
You are an expert in 360-degree feedback analysis and competency assessment.
You analyze written feedback about {employee_label} and produce structured,
evidence-based insights for each reviewer relationship category.

RELATIONSHIP CATEGORIES:
- senior: feedback from people more senior than the employee
- peer: feedback from equal colleagues ("Equal" and "Peer" are the same group)
- junior: feedback from people more junior than the employee

COMPETENCY FRAMEWORK (score only these, using exactly these names):
{framework}

SCORING RULES:
1. Score each competency from 1 to 5 using the rubric above.
2. Only score a competency when the feedback contains explicit evidence for it.
3. evidenceCount is the number of distinct responses that mention it.
4. Confidence follows evidence: "low" for 0-2 responses, "medium" for 3,
   "high" for 4 or more.
5. Quote the feedback verbatim in evidenceQuotes; never invent quotes.
6. A category with responseCount 0 gets empty themes and competencies.

Return a single JSON object with exactly this shape:
{{
  "insights": [
    {{
      "relationship": "senior" | "peer" | "junior",
      "responseCount": <int>,
      "themes": ["<recurring theme>"],
      "uniquePerspectives": ["<view specific to this category>"],
      "competencies": [
        {{
          "name": "<competency name>",
          "score": <1-5>,
          "confidence": "low" | "medium" | "high",
          "description": "<justification tied to the evidence>",
          "roleSpecificNotes": "<how this reads for the employee's role>",
          "evidenceCount": <int>,
          "evidenceQuotes": ["<verbatim quote>"]
        }}
      ]
    }}
  ]
}}
"""


class LLMInsightGenerator(IInsightGenerator):
    """Generate relationship insights with a single LLM completion.

    Parameters
    ----------
    llm_provider:
        Text-completion backend.
    temperature:
        Sampling temperature for the completion.
    max_tokens:
        Upper bound on the completion length.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, request: InsightRequest) -> list[RelationshipInsight]:
        """Run one analysis round trip for *request*.

        Raises
        ------
        InsightParseError
            If the reply is not JSON, does not match the expected shape,
            or holds no usable insights.
        """
        system_prompt = self._build_system_prompt(request)
        user_prompt = self._build_user_prompt(request)

        self._logger.info(
            "insight_generation_start",
            provider=self._llm.get_provider_name(),
            response_counts={
                rel.value: len(items) for rel, items in request.grouped_feedback.items()
            },
        )

        response = await self._llm.complete(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            json_mode=True,
        )

        parsed = self._parse_response(response)
        insights = self._validate_insights(parsed)
        result = self._normalize_insights(insights, request)

        self._logger.info(
            "insight_generation_complete",
            provider=self._llm.get_provider_name(),
            competency_counts={i.relationship.value: len(i.competencies) for i in result},
        )
        return result

    def get_provider_name(self) -> str:
        return f"llm_insight_generator:{self._llm.get_provider_name()}"

    # ------------------------------------------------------------------
    # Step 1: prompts
    # ------------------------------------------------------------------

    @staticmethod
    def _format_framework(framework: list[CompetencyDefinition]) -> str:
        blocks: list[str] = []
        for index, competency in enumerate(framework, start=1):
            lines = [f"{index}. {competency.name}"]
            if competency.aspects:
                lines.append(f"   Aspects: {', '.join(competency.aspects)}")
            for level in sorted(competency.rubric):
                lines.append(f"   {level}: {competency.rubric[level]}")
            blocks.append("\n".join(lines))
        return "\n".join(blocks)

    def _build_system_prompt(self, request: InsightRequest) -> str:
        employee_label = "the employee"
        if request.employee_name:
            employee_label = request.employee_name
            if request.employee_role:
                employee_label += f" ({request.employee_role})"
        return _SYSTEM_PROMPT_TEMPLATE.format(
            employee_label=employee_label,
            framework=self._format_framework(list(request.competency_framework)),
        )

    @staticmethod
    def _feedback_payload(item: FeedbackItem) -> dict[str, str]:
        return {
            "strengths": item.strengths or "",
            "areas_for_improvement": item.areas_for_improvement or "",
        }

    def _build_user_prompt(self, request: InsightRequest) -> str:
        payload = {
            "employeeName": request.employee_name,
            "employeeRole": request.employee_role,
            "relationships": [
                {
                    "relationship": relationship.value,
                    "responseCount": len(request.grouped_feedback.get(relationship, [])),
                    "feedback": [
                        self._feedback_payload(item)
                        for item in request.grouped_feedback.get(relationship, [])
                    ],
                }
                for relationship in CanonicalRelationship
            ],
        }
        return (
            "Analyze the following feedback grouped by relationship category.\n\n"
            + json.dumps(payload, indent=2, ensure_ascii=False)
        )

    # ------------------------------------------------------------------
    # Step 2: parsing and validation
    # ------------------------------------------------------------------

    def _parse_response(self, response: str) -> dict[str, Any]:
        """Extract the JSON object from the LLM reply.

        Handles markdown code fences and bare JSON objects surrounded by
        prose.
        """
        text = response.strip()

        fence_match = _JSON_FENCE_RE.search(text)
        if fence_match:
            text = fence_match.group(1).strip()

        # Fallback: find the first { ... } block
        if not text.startswith("{"):
            brace_start = text.find("{")
            brace_end = text.rfind("}")
            if brace_start != -1 and brace_end > brace_start:
                text = text[brace_start : brace_end + 1]

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            self._logger.error(
                "insight_json_parse_failed",
                error=str(exc),
                response_preview=response[:200],
            )
            raise InsightParseError(
                message=f"Failed to parse insight JSON: {exc}",
                provider_name=self._llm.get_provider_name(),
            ) from exc

        if not isinstance(parsed, dict):
            raise InsightParseError(
                message="Insight response is not a JSON object",
                provider_name=self._llm.get_provider_name(),
            )
        return parsed

    def _validate_insights(self, parsed: dict[str, Any]) -> list[RelationshipInsight]:
        raw_insights = parsed.get("insights")
        if not isinstance(raw_insights, list):
            raise InsightParseError(
                message="Insight response has no 'insights' list",
                provider_name=self._llm.get_provider_name(),
            )

        valid_labels = {rel.value for rel in CanonicalRelationship}
        insights: list[RelationshipInsight] = []
        seen: set[CanonicalRelationship] = set()

        for index, entry in enumerate(raw_insights):
            if not isinstance(entry, dict):
                raise InsightParseError(
                    message=f"insights[{index}] is not an object",
                    provider_name=self._llm.get_provider_name(),
                )
            label = str(entry.get("relationship", "")).strip().lower()
            if label in _IGNORED_RELATIONSHIPS:
                continue
            if label not in valid_labels:
                raise InsightParseError(
                    message=f"insights[{index}] has unknown relationship {label!r}",
                    provider_name=self._llm.get_provider_name(),
                )
            try:
                insight = RelationshipInsight.model_validate(entry)
            except ValidationError as exc:
                raise InsightParseError(
                    message=f"insights[{index}] failed validation: {exc.error_count()} error(s)",
                    provider_name=self._llm.get_provider_name(),
                ) from exc
            if insight.relationship in seen:
                raise InsightParseError(
                    message=f"Duplicate insight for relationship {label!r}",
                    provider_name=self._llm.get_provider_name(),
                )
            seen.add(insight.relationship)
            insights.append(insight)

        if not insights:
            raise InsightParseError(
                message="Insight response contains no relationship insights",
                provider_name=self._llm.get_provider_name(),
            )
        return insights

    # ------------------------------------------------------------------
    # Step 3: normalization
    # ------------------------------------------------------------------

    @staticmethod
    def confidence_for_evidence(evidence_count: int) -> ConfidenceLevel:
        """Map the number of supporting responses to a confidence level."""
        if evidence_count >= 4:
            return ConfidenceLevel.HIGH
        if evidence_count == 3:
            return ConfidenceLevel.MEDIUM
        return ConfidenceLevel.LOW

    def _normalize_competencies(
        self,
        competencies: list[CompetencyScore],
        framework_names: set[str],
        relationship: CanonicalRelationship,
    ) -> list[CompetencyScore]:
        kept: list[CompetencyScore] = []
        for competency in competencies:
            if framework_names and competency.name not in framework_names:
                self._logger.warning(
                    "unknown_competency_dropped",
                    relationship=relationship.value,
                    competency=competency.name,
                )
                continue
            expected = self.confidence_for_evidence(competency.evidence_count)
            if competency.confidence != expected:
                competency = competency.model_copy(update={"confidence": expected})
            kept.append(competency)
        return kept

    def _normalize_insights(
        self,
        insights: list[RelationshipInsight],
        request: InsightRequest,
    ) -> list[RelationshipInsight]:
        """Align the reply with the request's categories.

        Raises
        ------
        InsightParseError
            A category with feedback has no insight in the reply, or no
            category carries a theme or a score.
        """
        framework_names = {c.name for c in request.competency_framework}
        by_relationship = {insight.relationship: insight for insight in insights}

        result: list[RelationshipInsight] = []
        for relationship in CanonicalRelationship:
            response_count = len(request.grouped_feedback.get(relationship, []))
            insight = by_relationship.get(relationship)

            if response_count == 0:
                if insight is not None and insight.competencies:
                    self._logger.warning(
                        "empty_category_scores_dropped",
                        relationship=relationship.value,
                    )
                result.append(RelationshipInsight(relationship=relationship))
                continue

            if insight is None:
                raise InsightParseError(
                    message=(
                        f"Insight response has no entry for {relationship.value!r} "
                        f"({response_count} responses)"
                    ),
                    provider_name=self._llm.get_provider_name(),
                )

            result.append(
                insight.model_copy(
                    update={
                        "competencies": self._normalize_competencies(
                            insight.competencies, framework_names, relationship
                        ),
                        "response_count": response_count,
                    }
                )
            )

        if not any(insight.themes or insight.competencies for insight in result):
            raise InsightParseError(
                message="Insight response carries no themes or competency scores",
                provider_name=self._llm.get_provider_name(),
            )
        return result
