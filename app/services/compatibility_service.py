"""
CoNekt — Compatibility Evaluator

Combines six weighted text-similarity dimensions and one age-proximity
dimension into a single compatibility score:

  score = Σ(w_d × s_d) / Σ(w_d)      over the dimensions both users answered

Dimensions a user left blank are skipped entirely rather than scored as 0,
so sparse profiles are judged on the signal they do provide.  Weights are
therefore *not* normalised up front: with every dimension present they sum
to 1.20, and the denominator is always the subset actually evaluated.

Dimension table (weight, factor label, factor threshold):
  keystone values      0.25  "Shared values"                > 0.3
  interests            0.20  "Common interests"             > 0.3
  favorite books       0.10  "Similar reading preferences"  > 0.3
  cultural upbringing  0.15  "Similar background"           > 0.3
  career               0.15  "Professional alignment"       > 0.3
  relationship goals   0.25  "Aligned relationship goals"   > 0.3
  age proximity        0.10  "Similar age range"            > 0.7
    where age_score = max(0, 1 - |age_a - age_b| / 20)
    (an unknown or zero age on either side skips the age dimension)
"""

from __future__ import annotations

from typing import NamedTuple

import structlog

from app.schemas.match import CompatibilityResult
from app.schemas.profile import Profile
from app.services.similarity_service import SimilarityService

logger = structlog.get_logger("conekt.compatibility_service")

# ──────────────────────────────────────────────────────────────────────────────
# Constants
# ──────────────────────────────────────────────────────────────────────────────

_TEXT_FACTOR_THRESHOLD = 0.3
_AGE_FACTOR_THRESHOLD = 0.7
_AGE_SPAN_YEARS = 20.0
_AGE_WEIGHT = 0.10

AGE_FACTOR = "Similar age range"
DEFAULT_FACTOR = "Potential for connection"


class TextDimension(NamedTuple):
    field: str
    weight: float
    factor: str


TEXT_DIMENSIONS: tuple[TextDimension, ...] = (
    TextDimension("keystone_values", 0.25, "Shared values"),
    TextDimension("interests", 0.20, "Common interests"),
    TextDimension("favorite_books", 0.10, "Similar reading preferences"),
    TextDimension("cultural_upbringing", 0.15, "Similar background"),
    TextDimension("career", 0.15, "Professional alignment"),
    TextDimension("relationship_goals", 0.25, "Aligned relationship goals"),
)


class CompatibilityService:
    """Weighted-average compatibility over the dimensions two profiles share.

    The similarity scorer is injected so tests can instrument it.
    """

    def __init__(self, similarity_service: SimilarityService | None = None) -> None:
        self.similarity_service = similarity_service or SimilarityService()

    def evaluate(self, profile_a: Profile, profile_b: Profile) -> CompatibilityResult:
        """Score a pair of profiles.

        Returns
        -------
        CompatibilityResult
            ``score`` clamped to [0, 1] (0 when nothing was comparable) and
            the triggered factor labels in dimension order, or the single
            placeholder ``"Potential for connection"``.
        """
        weighted_total = 0.0
        weight_sum = 0.0
        factors: list[str] = []

        for dimension in TEXT_DIMENSIONS:
            if not (profile_a.has(dimension.field) and profile_b.has(dimension.field)):
                continue

            dim_score = self.similarity_service.similarity(
                getattr(profile_a, dimension.field),
                getattr(profile_b, dimension.field),
            )
            weighted_total += dim_score * dimension.weight
            weight_sum += dimension.weight
            if dim_score > _TEXT_FACTOR_THRESHOLD:
                factors.append(dimension.factor)

        if profile_a.age and profile_b.age:
            age_score = self._age_proximity(profile_a.age, profile_b.age)
            weighted_total += age_score * _AGE_WEIGHT
            weight_sum += _AGE_WEIGHT
            if age_score > _AGE_FACTOR_THRESHOLD:
                factors.append(AGE_FACTOR)

        score = weighted_total / weight_sum if weight_sum > 0 else 0.0
        score = max(0.0, min(1.0, score))

        logger.debug(
            "compatibility_evaluated",
            user_a=profile_a.id,
            user_b=profile_b.id,
            score=round(score, 4),
            dimensions_evaluated=round(weight_sum, 2),
        )

        return CompatibilityResult(
            score=score,
            factors=factors or [DEFAULT_FACTOR],
        )

    @staticmethod
    def _age_proximity(age_a: int, age_b: int) -> float:
        """Linear falloff to 0 at a 20-year gap."""
        return max(0.0, 1.0 - abs(age_a - age_b) / _AGE_SPAN_YEARS)
