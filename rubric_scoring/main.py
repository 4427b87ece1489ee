"""FastAPI 入口，注册评分引擎路由并初始化数据库表。"""

from fastapi import FastAPI

from rubric_scoring import __version__
from rubric_scoring.api.v2 import router as api_v2_router
from rubric_scoring.config import get_settings
from rubric_scoring.db import Base, engine
from rubric_scoring.logging_config import configure_logging


def create_app() -> FastAPI:
    """应用工厂，便于测试与拓展路由。"""

    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="Rubric Scoring API", version=__version__)

    @app.on_event("startup")
    def init_models() -> None:
        """启动时确保表存在。"""

        Base.metadata.create_all(bind=engine)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    app.include_router(api_v2_router)
    return app


app = create_app()
