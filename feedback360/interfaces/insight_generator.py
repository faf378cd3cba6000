"""Abstract base class for insight generators.

The insight generator is the slow, failure-prone step of the analytics
cache: given grouped feedback and a competency framework it returns themes
and competency scores per relationship category.  The cache coordinator
only depends on this contract; ``LLMInsightGenerator`` in
``feedback360/services/insight_generator.py`` implements it on top of an
:class:`~feedback360.interfaces.llm_provider.ILLMProvider`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from feedback360.models.feedback import CanonicalRelationship, FeedbackItem
from feedback360.models.insights import CompetencyDefinition, RelationshipInsight


@dataclass(frozen=True)
class InsightRequest:
    """Input for one generator call.

    Attributes
    ----------
    employee_name:
        Name of the person the feedback is about.
    employee_role:
        Their role, used by the generator to interpret leadership evidence.
    grouped_feedback:
        Output of :func:`feedback360.services.feedback_grouper.group`; always
        holds all three canonical keys.
    competency_framework:
        Competencies the generator scores against.
    """

    employee_name: str
    employee_role: str
    grouped_feedback: dict[CanonicalRelationship, list[FeedbackItem]]
    competency_framework: list[CompetencyDefinition] = field(default_factory=list)


class IInsightGenerator(ABC):
    """Contract for turning grouped feedback into relationship insights."""

    @abstractmethod
    async def generate(self, request: InsightRequest) -> list[RelationshipInsight]:
        """Produce one :class:`RelationshipInsight` per canonical category.

        Raises
        ------
        feedback360.utils.errors.LLMError
            Transport-level failure of the underlying service.
        feedback360.utils.errors.RateLimitError
            The service throttled the request.
        feedback360.utils.errors.ProviderUnavailableError
            The service could not be reached.
        feedback360.utils.errors.InsightParseError
            The service answered with unusable output.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this generator."""
