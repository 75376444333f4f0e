# playjazz_crm/main.py
import sys
import asyncio

# Event loop compatível no Windows
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from playjazz_crm.core.config import settings
from playjazz_crm.api.router import api_router
from playjazz_crm.db.session import engine
from playjazz_crm.db.base import Base

# registra todas as tabelas no metadata
from playjazz_crm.modules.units import models as _units  # noqa: F401
from playjazz_crm.modules.users import models as _users  # noqa: F401
from playjazz_crm.modules.leads import models as _leads  # noqa: F401
from playjazz_crm.modules.students import models as _students  # noqa: F401
from playjazz_crm.modules.payments import models as _payments  # noqa: F401
from playjazz_crm.modules.system_config import models as _config  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # em dev as tabelas são criadas na subida; em prod fica a cargo do deploy
    if settings.is_dev:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tabelas verificadas (%s)", engine.url.render_as_string(hide_password=True))
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(title="PlayJazz CRM", lifespan=lifespan)

    # CORS antes dos routers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app


app = create_app()
