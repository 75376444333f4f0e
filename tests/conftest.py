import os
import tempfile

# banco e armazenamento temporários ANTES de importar o app (settings lê env no import)
_TMP = tempfile.mkdtemp(prefix="playjazz-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP}/test.db"
os.environ["LOCAL_STORE_PATH"] = os.path.join(_TMP, "local_storage.json")
os.environ["ENVIRONMENT"] = "test"
os.environ["FETCH_RETRY_DELAY"] = "0"

from datetime import date

import httpx
import pytest

from playjazz_crm.client.local import LocalDataProvider
from playjazz_crm.client.storage import LocalStorage
from playjazz_crm.client.transport import ApiClient
from playjazz_crm.db.base import Base
from playjazz_crm.db.session import AsyncSessionLocal, engine
from playjazz_crm.main import app
from scripts.seed import seed_database

TODAY = date(2024, 3, 1)


@pytest.fixture
async def db_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest.fixture
async def seeded(db_schema):
    async with AsyncSessionLocal() as db:
        await seed_database(db, today=TODAY)


@pytest.fixture
async def client(db_schema):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def api(db_schema):
    c = ApiClient("http://test", transport=httpx.ASGITransport(app=app), retry_delay=0)
    yield c
    await c.aclose()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def local_provider(storage):
    return LocalDataProvider(storage, latency=0, retry_delay=0, today=TODAY)
