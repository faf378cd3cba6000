"""Cross-relationship aggregation of competency scores.

Each relationship category scores the same competencies independently.
The aggregation engine folds them into one number per competency:

    weighted = Σ(w[c] * s[c]) / Σ(w[c])     for c reporting the competency

Only categories that actually reported a score take part, so the weights
are renormalized over the reporting subset.  With a single reporter its
raw score passes straight through.  If every reporting weight is zero the
plain mean is used instead of dividing by zero.

Nothing here is stored: the aggregate is recomputed from the latest
``RelationshipInsight`` list every time it is needed.
"""

from __future__ import annotations

from collections.abc import Sequence
from statistics import fmean, pvariance

from feedback360.models.feedback import CanonicalRelationship
from feedback360.models.insights import (
    AggregateCompetency,
    AggregateInsight,
    ConfidenceLevel,
    RelationshipInsight,
    RelationshipWeights,
)

# Aggregate confidence thresholds: (minimum evidence, maximum variance).
# Both also require at least two reporting categories.
_HIGH_CONFIDENCE = (10, 1.0)
_MEDIUM_CONFIDENCE = (5, 2.0)

_DISPLAY_DECIMALS = 2


def _weighted_score(
    reports: Sequence[tuple[CanonicalRelationship, float]],
    weights: RelationshipWeights,
) -> float:
    if len(reports) == 1:
        return reports[0][1]
    total_weight = sum(weights.for_relationship(rel) for rel, _ in reports)
    if total_weight <= 0:
        return fmean(score for _, score in reports)
    weighted_sum = sum(weights.for_relationship(rel) * score for rel, score in reports)
    return weighted_sum / total_weight


def _collect_reports(
    insights: Sequence[RelationshipInsight],
) -> dict[str, list[tuple[CanonicalRelationship, float]]]:
    # First-seen order of competency names, then each category's score.
    # A category that lists a competency twice contributes its first score.
    reports: dict[str, list[tuple[CanonicalRelationship, float]]] = {}
    for insight in insights:
        seen: set[str] = set()
        for competency in insight.competencies:
            if competency.name in seen:
                continue
            seen.add(competency.name)
            reports.setdefault(competency.name, []).append(
                (insight.relationship, competency.score)
            )
    return reports


def aggregate(
    insights: Sequence[RelationshipInsight],
    weights: RelationshipWeights | None = None,
) -> dict[str, float]:
    """Return ``{competency name: weighted score}`` across all categories.

    Parameters
    ----------
    insights:
        Per-category insights, typically one per canonical relationship.
    weights:
        Category weights; defaults to senior .40 / peer .35 / junior .25.

    Competencies no category reported are absent from the result.  Scores
    are not rounded; use :func:`display_score` for presentation.
    """
    weights = weights or RelationshipWeights()
    return {
        name: _weighted_score(reports, weights)
        for name, reports in _collect_reports(insights).items()
    }


def display_score(value: float) -> float:
    """Round a score the way it is shown to users (two decimals)."""
    return round(value, _DISPLAY_DECIMALS)


def _aggregate_confidence(
    evidence_count: int, scores: Sequence[float]
) -> ConfidenceLevel:
    if len(scores) < 2:
        return ConfidenceLevel.LOW
    variance = pvariance(scores)
    min_evidence, max_variance = _HIGH_CONFIDENCE
    if evidence_count >= min_evidence and variance < max_variance:
        return ConfidenceLevel.HIGH
    min_evidence, max_variance = _MEDIUM_CONFIDENCE
    if evidence_count >= min_evidence and variance < max_variance:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def build_aggregate_insight(
    insights: Sequence[RelationshipInsight],
    weights: RelationshipWeights | None = None,
) -> AggregateInsight:
    """Build the aggregate view shown alongside the per-category insights.

    Themes are the de-duplicated union across categories in category order;
    per competency the weighted score, plain mean, summed evidence count,
    reporting categories, and a confidence derived from evidence volume and
    score agreement are included.
    """
    weights = weights or RelationshipWeights()
    weighted = aggregate(insights, weights)

    themes: list[str] = []
    for insight in insights:
        for theme in insight.themes:
            if theme not in themes:
                themes.append(theme)

    by_name: dict[str, list] = {}
    for insight in insights:
        for competency in insight.competencies:
            by_name.setdefault(competency.name, []).append((insight.relationship, competency))

    competencies: list[AggregateCompetency] = []
    for name, weighted_score in weighted.items():
        entries = by_name[name]
        relationships: list[CanonicalRelationship] = []
        scores: list[float] = []
        quotes: list[str] = []
        evidence = 0
        for relationship, competency in entries:
            if relationship in relationships:
                continue
            relationships.append(relationship)
            scores.append(competency.score)
            evidence += competency.evidence_count
            quotes.extend(competency.evidence_quotes)
        competencies.append(
            AggregateCompetency(
                name=name,
                weighted_score=weighted_score,
                raw_average=fmean(scores),
                evidence_count=evidence,
                confidence=_aggregate_confidence(evidence, scores),
                reporting_relationships=relationships,
                evidence_quotes=quotes,
            )
        )

    return AggregateInsight(
        themes=themes,
        competencies=competencies,
        response_count=sum(insight.response_count for insight in insights),
    )
