"""按评分项汇总得分。"""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Optional, Sequence

from rubric_scoring.models.enums import ScoreBucket
from rubric_scoring.schemas.grading import ScoreSummary
from rubric_scoring.services.criterion_keys import criterion_identity


logger = logging.getLogger(__name__)

HIGH_THRESHOLD = 80
MEDIUM_THRESHOLD = 60


def clamp_score(value: Any, ceiling: float) -> float:
    """把单项得分截断到 ``[0, ceiling]``，无法解析的输入按 0 分处理。"""

    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(score):
        return 0.0
    return max(0.0, min(max(ceiling, 0.0), score))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_bucket(percentage: float) -> ScoreBucket:
    if percentage >= HIGH_THRESHOLD:
        return ScoreBucket.HIGH
    if percentage >= MEDIUM_THRESHOLD:
        return ScoreBucket.MEDIUM
    return ScoreBucket.LOW


def criterion_bucket(score: Any, max_points: float) -> Optional[ScoreBucket]:
    """单个评分项的档位；尚未打分或满分为 0 时返回 ``None``。"""

    if score is None or not max_points or max_points <= 0:
        return None
    return score_bucket(100 * clamp_score(score, max_points) / max_points)


def aggregate_scores(
    criteria: Sequence[Any],
    scores: Mapping[str, Any],
    max_total: Optional[float] = None,
) -> ScoreSummary:
    """汇总各评分项得分。

    - 每项得分先截断到该项满分，再求和；缺失的评分项按 0 分计；
    - ``max_total`` 缺省为各项满分之和，总分不会超过 ``max_total``；
    - 百分比四舍五入取整，``max_total`` 不大于 0 时为 0。
    """

    total = 0.0
    ceiling_sum = 0.0
    for criterion in criteria:
        _name, key, max_points = criterion_identity(criterion)
        ceiling = max_points if max_points is not None and not math.isnan(max_points) else 0.0
        ceiling_sum += max(ceiling, 0.0)
        total += clamp_score(scores.get(key), ceiling)

    if max_total is None:
        max_total = ceiling_sum
    total = min(total, max(float(max_total), 0.0))

    if max_total > 0:
        percentage = _round_half_up(100 * total / max_total)
    else:
        percentage = 0

    summary = ScoreSummary(
        total=total,
        max_total=float(max_total),
        percentage=percentage,
        bucket=score_bucket(percentage),
    )
    logger.debug(
        "Aggregated %d criteria: %s/%s (%s%%)",
        len(criteria),
        summary.total,
        summary.max_total,
        summary.percentage,
    )
    return summary
