import database
import models
import pytest
from config import Settings
from fastapi.testclient import TestClient
from main import create_app, get_object_store


class FakeObjectStore:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body, **kwargs):
        self.objects[(Bucket, Key)] = {"Body": Body, **kwargs}
        return {"ETag": '"fake"'}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'links.db'}",
        public_base_url="https://sho.rt",
        s3_bucket="link-exports",
        s3_region="auto",
        s3_endpoint="https://storage.example.com",
    )


@pytest.fixture
def object_store():
    return FakeObjectStore()


@pytest.fixture
def client(settings, object_store):
    app = create_app(settings)
    app.dependency_overrides[get_object_store] = lambda: object_store
    with TestClient(app) as client:
        yield client


@pytest.fixture
def session_factory(settings):
    engine = database.make_engine(settings.database_url)
    models.Base.metadata.create_all(bind=engine)
    yield database.make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
