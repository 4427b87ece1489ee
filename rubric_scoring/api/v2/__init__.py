"""API v2 路由包入口。"""

from fastapi import APIRouter

from rubric_scoring.api.v2 import evaluations, rubrics, submissions

router = APIRouter(prefix="/api/v2")

# 注册子路由
router.include_router(rubrics.router, prefix="/rubrics", tags=["评分标准"])
router.include_router(evaluations.router, prefix="/evaluations", tags=["评价"])
router.include_router(submissions.router, prefix="/submissions", tags=["提交"])
