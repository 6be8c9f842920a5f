import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from studyshare.config import Settings
from studyshare.core import db as db_module
from studyshare.core.security import create_access_token, hash_password
from studyshare.main import create_app
from studyshare.models import Resource, User
from studyshare.services import build_services


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

PDF_BYTES = b"%PDF-1.4\n% test document\n"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest.fixture
def test_settings(tmp_path):
    """Settings with uploads going to a per-test temporary directory."""
    return Settings(upload_dir=str(tmp_path / "uploads"), download_requires_auth=False)


@pytest_asyncio.fixture
async def db():
    """Fresh database for service-level tests that don't need HTTP."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def services(test_settings):
    return build_services(test_settings)


async def _client_for(settings: Settings):
    app = create_app(settings)
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://testserver")


@pytest_asyncio.fixture
async def client(test_settings):
    """
    Provide an HTTPX AsyncClient bound to a fresh FastAPI app with a fresh DB.
    """
    await _init_test_db()
    async with await _client_for(test_settings) as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client_factory(tmp_path):
    """
    Build clients for apps with custom settings (e.g. DOWNLOAD_REQUIRES_AUTH on).
    Shares the per-test database with the other fixtures.
    """
    await _init_test_db()
    opened = []

    async def _make(**overrides) -> AsyncClient:
        overrides.setdefault("upload_dir", str(tmp_path / "uploads"))
        c = await _client_for(Settings(**overrides))
        opened.append(c)
        return c

    yield _make
    for c in opened:
        await c.aclose()
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create users directly via ORM.
    """

    async def _create_user(password: str = "UserPass!23", **fields) -> tuple[User, str]:
        suffix = uuid.uuid4().hex[:6]
        fields.setdefault("username", f"user_{suffix}")
        fields.setdefault("email", f"{suffix}@example.com")
        user = await User.create(password_hash=hash_password(password), **fields)
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_resource():
    """
    Factory fixture to insert resources directly, bypassing uploads.
    """

    async def _create_resource(owner: User, **fields) -> Resource:
        fields.setdefault("title", f"Notes {uuid.uuid4().hex[:6]}")
        fields.setdefault("subject", "Mathematics")
        fields.setdefault("file_type", "application/pdf")
        fields.setdefault("file_name", "notes.pdf")
        fields.setdefault("file_size", len(PDF_BYTES))
        fields.setdefault("file_path", f"uploads/{owner.id}/notes.pdf")
        return await Resource.create(uploaded_by=owner, **fields)

    return _create_resource


@pytest.fixture
def auth_headers():
    """
    Build an Authorization header carrying a token for an existing user.
    """

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(str(user.id))}"}

    return _headers
