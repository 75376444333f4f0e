# playjazz_crm/db/session.py
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from playjazz_crm.core.config import settings


def _database_url() -> str:
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    # sem DATABASE_URL: SQLite local em <raiz>/data
    data_dir = Path(__file__).resolve().parents[2] / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return f"sqlite+aiosqlite:///{(data_dir / 'playjazz.db').as_posix()}"


_db_url = _database_url()

engine = create_async_engine(
    _db_url,
    echo=False,
    # conexão de Postgres pode cair entre requisições
    pool_pre_ping=not _db_url.startswith("sqlite"),
)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
