"""把 AI 生成的整段反馈按评分项切分。

对每个评分项按顺序尝试三种写法，命中第一种即停止：

1. ``**Thesis**: ...``，截止到下一个 ``**`` 或文本末尾；
2. ``Organization (8/10): ...``，截止到空行或文本末尾；
3. ``Clarity: ...``，截止到下一个以大写字母开头的行（可带列表符号）、空行或文本末尾。

评分项名称按字面量匹配（先转义），只对 ASCII 忽略大小写。第 2、3 种写法要求
名称位于行首（可带列表/标题符号），避免 ``Quality`` 误命中 ``Content Quality``。
"""

from __future__ import annotations

import logging
import re
import string
from typing import Any, Dict, List, Optional, Pattern, Sequence

from rubric_scoring.schemas.grading import FeedbackSegment
from rubric_scoring.services.criterion_keys import criterion_identity


logger = logging.getLogger(__name__)

_FLAGS = re.ASCII | re.DOTALL

# 行首，允许前置缩进、列表符号、标题符号或编号
_LINE_PREFIX = r"[ \t]*(?:[-*>#•]+[ \t]*|\d+[.)][ \t]*)?"
_LINE_START = r"(?:\A|(?<=\n))" + _LINE_PREFIX
# 冒号后允许换一行再开始正文，但正文必须以非空白字符开头
_TEXT_START = r"[ \t]*(?:\n[ \t]*)?"
_STRIP_CHARS = "*" + string.whitespace


def _name_pattern(name: str) -> str:
    return f"(?i:{re.escape(name)})"


def _criterion_patterns(name: str) -> List[Pattern[str]]:
    named = _name_pattern(name)
    return [
        re.compile(
            rf"\*\*{named}:?\*\*[:\s]*(?P<text>(?:(?!\*\*).)+)",
            _FLAGS,
        ),
        re.compile(
            rf"{_LINE_START}{named}[ \t]*\([^)\n]*\)[ \t]*:?{_TEXT_START}"
            r"(?P<text>\S.*?)(?=\n[ \t]*\n|\Z)",
            _FLAGS,
        ),
        re.compile(
            rf"{_LINE_START}{named}[ \t]*:{_TEXT_START}"
            rf"(?P<text>\S.*?)(?=\n{_LINE_PREFIX}[A-Z]|\n[ \t]*\n|\Z)",
            _FLAGS,
        ),
    ]


def _clean(text: str) -> str:
    return text.strip(_STRIP_CHARS)


def _match_criterion(feedback: str, name: str) -> Optional[str]:
    for pattern in _criterion_patterns(name):
        match = pattern.search(feedback)
        if match is None:
            continue
        text = _clean(match.group("text"))
        if text:
            return text
    return None


def segment_feedback(feedback: str, criteria: Sequence[Any]) -> Dict[str, FeedbackSegment]:
    """返回 ``{评分项名称: FeedbackSegment}``，未命中的评分项不出现在结果中。

    对任意输入都不会抛出异常，空反馈返回空字典。
    """

    segments: Dict[str, FeedbackSegment] = {}
    if not feedback or not criteria:
        return segments

    for criterion in criteria:
        name, _key, _max_points = criterion_identity(criterion)
        if not name:
            continue
        text = _match_criterion(feedback, name)
        if text is None:
            continue
        segments[name] = FeedbackSegment(criterion_name=name, text=text)

    logger.debug("Matched %d of %d criteria in feedback", len(segments), len(criteria))
    return segments


def _annotation_pattern(name: str) -> Pattern[str]:
    return re.compile(
        rf"{_LINE_START}(?:\*\*)?{_name_pattern(name)}(?:\*\*)?[ \t]*"
        r"\([ \t]*(?P<score>\d+(?:\.\d+)?)[ \t]*(?:/[ \t]*(?P<out_of>\d+(?:\.\d+)?))?[^)\n]*\)",
        _FLAGS,
    )


def suggest_scores(feedback: str, criteria: Sequence[Any]) -> Dict[str, float]:
    """从 ``Organization (8/10):`` 这类行内标注中读出 AI 建议分数。

    返回 ``{评分项 key: 分数}``。标注的分母与评分项满分不同时按比例换算；
    是否超出满分留给汇总时截断处理。
    """

    suggestions: Dict[str, float] = {}
    if not feedback or not criteria:
        return suggestions

    for criterion in criteria:
        name, key, max_points = criterion_identity(criterion)
        if not name or not key:
            continue
        match = _annotation_pattern(name).search(feedback)
        if match is None:
            continue
        score = float(match.group("score"))
        out_of = match.group("out_of")
        if out_of is not None and max_points:
            denominator = float(out_of)
            if denominator > 0 and denominator != max_points:
                score = round(score * max_points / denominator, 2)
        suggestions[key] = score
    return suggestions
