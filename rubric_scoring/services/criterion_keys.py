"""评分项名称到稳定 key 的归一化。"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping, Optional, Tuple

# 非字母数字（含下划线）的连续片段折叠为一个分隔符
_SEPARATOR_RUN = re.compile(r"[\W_]+")


def normalize_criterion_key(name: str) -> str:
    """把教师输入的评分项名称转换为 key。

    ``"Content Quality"`` 与 ``"content-quality"`` 得到同一个 key
    ``"content_quality"``。空名称或只含标点的名称返回空字符串，由校验器拒绝。
    """

    if not name:
        return ""
    return _SEPARATOR_RUN.sub("_", name.strip().lower()).strip("_")


def find_key_collision(names: Iterable[str]) -> Optional[Tuple[str, str, str]]:
    """按声明顺序返回第一组冲突 ``(先出现的名称, 后出现的名称, key)``。"""

    seen: dict[str, str] = {}
    for name in names:
        key = normalize_criterion_key(name)
        if not key:
            continue
        if key in seen:
            return seen[key], name, key
        seen[key] = name
    return None


def criterion_identity(criterion: Any) -> Tuple[str, str, Optional[float]]:
    """返回 ``(名称, key, 满分)``，兼容 ``Criterion`` 模型、dict 与纯字符串。

    满分未知时为 ``None``；模型或 dict 未携带 key 时由名称推导。
    """

    if isinstance(criterion, str):
        return criterion.strip(), normalize_criterion_key(criterion), None
    if isinstance(criterion, Mapping):
        name = criterion.get("name") or criterion.get("criterion_name") or ""
        key = criterion.get("key") or ""
        points = criterion.get("max_points", criterion.get("points"))
    else:
        name = getattr(criterion, "name", "") or ""
        key = getattr(criterion, "key", "") or ""
        points = getattr(criterion, "max_points", None)
    name = str(name).strip()
    try:
        max_points = float(points) if points is not None else None
    except (TypeError, ValueError):
        max_points = None
    return name, key or normalize_criterion_key(name), max_points
