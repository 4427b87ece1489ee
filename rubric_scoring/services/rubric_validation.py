"""评分标准校验与总分计算。

校验按严重程度依次进行，遇到第一个错误即停止：

1. 评分标准名称非空；
2. 每个评分项都有名称，且名称能得到非空 key；
3. 评分项 key 不重复；
4. 各项满分之和大于 0。

通过后返回带 key 的 ``Rubric``，``total_points`` 一律按各项满分重新求和，
客户端提交的总分不被采信。
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Union

from rubric_scoring.schemas.rubric import Criterion, CriterionDraft, Rubric, RubricDraft
from rubric_scoring.services.criterion_keys import find_key_collision, normalize_criterion_key


logger = logging.getLogger(__name__)


class RubricValidationError(ValueError):
    """评分标准不合法，需退回给教师修改。"""

    code = "invalid_rubric"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class MissingRubricName(RubricValidationError):
    code = "missing_rubric_name"

    def __init__(self) -> None:
        super().__init__("Rubric name is required")


class MissingCriterionName(RubricValidationError):
    code = "missing_criterion_name"

    def __init__(self, index: int, name: str = "") -> None:
        if name.strip():
            message = f"Criterion #{index + 1} name {name.strip()!r} contains no letters or digits"
        else:
            message = f"Criterion #{index + 1} must have a name"
        super().__init__(message)
        self.index = index

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["index"] = self.index
        return detail


class DuplicateCriterionKey(RubricValidationError):
    code = "duplicate_criterion_key"

    def __init__(self, first_name: str, second_name: str, key: str) -> None:
        super().__init__(
            f"Criteria {first_name!r} and {second_name!r} both normalize to key {key!r}"
        )
        self.first_name = first_name
        self.second_name = second_name
        self.key = key

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail.update(
            {"first_name": self.first_name, "second_name": self.second_name, "key": self.key}
        )
        return detail


class ZeroPointRubric(RubricValidationError):
    code = "zero_point_rubric"

    def __init__(self) -> None:
        super().__init__("Rubric must be worth more than 0 points")


class InvalidCriterionPoints(RubricValidationError):
    """库中记录的满分不是非负数字。"""

    code = "invalid_criterion_points"

    def __init__(self, index: int, value: Any) -> None:
        super().__init__(
            f"Criterion #{index + 1} max_points {value!r} must be a non-negative number"
        )
        self.index = index
        self.value = value

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["index"] = self.index
        return detail


DraftInput = Union[RubricDraft, Mapping[str, Any]]


def validate_rubric(draft: DraftInput) -> Rubric:
    """校验评分标准草稿，返回规范化的 ``Rubric``。

    失败时抛出 ``RubricValidationError`` 的子类。
    """

    if not isinstance(draft, RubricDraft):
        draft = RubricDraft.model_validate(draft)

    try:
        name = draft.name.strip()
        if not name:
            raise MissingRubricName()

        names: List[str] = []
        for index, criterion in enumerate(draft.criteria):
            criterion_name = criterion.name.strip()
            if not normalize_criterion_key(criterion_name):
                raise MissingCriterionName(index, criterion.name)
            names.append(criterion_name)

        collision = find_key_collision(names)
        if collision is not None:
            raise DuplicateCriterionKey(*collision)

        total_points = sum(criterion.max_points for criterion in draft.criteria)
        if total_points <= 0:
            raise ZeroPointRubric()
    except RubricValidationError as exc:
        logger.info("Rejected rubric %r: %s", draft.name, exc.message)
        raise

    if draft.total_points is not None and draft.total_points != total_points:
        logger.debug(
            "Ignoring client total_points=%s for rubric %r, computed %s",
            draft.total_points,
            name,
            total_points,
        )

    criteria = [
        Criterion(
            name=criterion_name,
            description=criterion.description.strip(),
            max_points=criterion.max_points,
            key=normalize_criterion_key(criterion_name),
        )
        for criterion_name, criterion in zip(names, draft.criteria)
    ]
    return Rubric(
        name=name,
        description=draft.description.strip(),
        criteria=criteria,
        total_points=total_points,
    )


def rubric_to_record(rubric: Rubric) -> Dict[str, Any]:
    """持久化层使用的记录格式。"""

    return {
        "name": rubric.name,
        "description": rubric.description,
        "criteria": [
            {
                "name": criterion.name,
                "description": criterion.description,
                "max_points": criterion.max_points,
            }
            for criterion in rubric.criteria
        ],
        "total_points": rubric.total_points,
    }


def criteria_by_key(rubric: Rubric) -> Dict[str, Dict[str, Any]]:
    """按 key 索引的评分项映射，是有序列表的派生视图。"""

    return {
        criterion.key: {
            "name": criterion.name,
            "description": criterion.description,
            "max_points": criterion.max_points,
        }
        for criterion in rubric.criteria
    }


def _display_name(key: str) -> str:
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), key.replace("_", " "))


def _coerce_points(index: int, item: Mapping[str, Any]) -> int:
    value = item.get("max_points", item.get("points"))
    if value is None:
        return 0
    try:
        points = int(float(value))
    except (TypeError, ValueError, OverflowError):
        raise InvalidCriterionPoints(index, value) from None
    if points < 0:
        raise InvalidCriterionPoints(index, value)
    return points


def _draft_criteria(raw: Any) -> List[CriterionDraft]:
    drafts: List[CriterionDraft] = []
    if isinstance(raw, Mapping):
        # 旧格式: {"content": {"max_points": 30, "description": "..."}}
        for index, (key, value) in enumerate(raw.items()):
            value = value if isinstance(value, Mapping) else {}
            drafts.append(
                CriterionDraft(
                    name=str(value.get("name") or _display_name(str(key))),
                    description=str(value.get("description") or ""),
                    max_points=_coerce_points(index, value),
                )
            )
    elif isinstance(raw, list):
        for index, item in enumerate(raw):
            if isinstance(item, Mapping):
                drafts.append(
                    CriterionDraft(
                        name=str(item.get("name") or ""),
                        description=str(item.get("description") or ""),
                        max_points=_coerce_points(index, item),
                    )
                )
            elif isinstance(item, str):
                drafts.append(CriterionDraft(name=item))
    return drafts


def rubric_from_record(record: Mapping[str, Any]) -> Rubric:
    """从持久化记录恢复 ``Rubric``，兼容列表与按 key 索引两种评分项格式。

    记录会重新经过校验，因此库中被篡改的总分同样会被纠正；满分为负数或
    不是数字时抛出 ``InvalidCriterionPoints``。
    """

    try:
        criteria = _draft_criteria(record.get("criteria"))
    except RubricValidationError as exc:
        logger.info("Rejected stored rubric %r: %s", record.get("name"), exc.message)
        raise
    draft = RubricDraft(
        name=str(record.get("name") or ""),
        description=str(record.get("description") or ""),
        criteria=criteria,
    )
    return validate_rubric(draft)
