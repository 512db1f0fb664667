import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from lookalike.api.description_api import FALLBACK_DESCRIPTION
from lookalike.config import Settings
from lookalike.errors import UpstreamError
from lookalike.server import app as server_app
from lookalike.server.app import create_app

from .conftest import (
    DESCRIPTION_MODEL,
    EMBEDDING_MODEL,
    FakeCollection,
    FakeRuntime,
    build_test_pipeline,
    description_response,
    embedding_response,
    to_data_url,
)


def make_client(runtime=None, collection=None, healthy=True) -> TestClient:
    runtime = runtime or FakeRuntime({
        EMBEDDING_MODEL: embedding_response(),
        DESCRIPTION_MODEL: description_response(),
    })
    collection = collection or FakeCollection()
    app = create_app(
        pipeline=build_test_pipeline(runtime, collection),
        health_check=lambda: healthy,
    )
    return TestClient(app)


def assert_plain_text(response, status, text):
    assert response.status_code == status
    assert response.text == text
    assert response.headers["content-type"].startswith("text/plain")


def test_missing_image():
    assert_plain_text(make_client().post("/api/search", json={}), 400, "Please upload an image first.")


@pytest.mark.parametrize("body", [{"img": ""}, {"img": None}, {"img": 123}, [1, 2]])
def test_empty_or_wrongly_typed_image(body):
    assert_plain_text(make_client().post("/api/search", json=body), 400, "Please upload an image first.")


def test_body_that_is_not_json():
    response = make_client().post(
        "/api/search", content=b"img=abc", headers={"content-type": "application/json"}
    )
    assert_plain_text(response, 400, "Please upload an image first.")


def test_not_a_data_url():
    response = make_client().post("/api/search", json={"img": "notadataurl"})
    assert_plain_text(response, 400, "Invalid image format.")


def test_valid_base64_that_is_not_an_image():
    response = make_client().post("/api/search", json={"img": to_data_url(b"just some bytes")})
    assert_plain_text(response, 400, "Invalid image format.")


def test_embedding_failure_returns_500(data_url):
    error = ClientError({"Error": {"Code": "ServiceUnavailableException", "Message": "down"}}, "InvokeModel")
    runtime = FakeRuntime({EMBEDDING_MODEL: error, DESCRIPTION_MODEL: description_response()})
    collection = FakeCollection(docs=[{"_id": 1, "image": "A"}])

    response = make_client(runtime=runtime, collection=collection).post("/api/search", json={"img": data_url})

    assert_plain_text(response, 500, "Internal Server Error")
    assert collection.pipelines == []


def test_two_matches(data_url, stored_images):
    collection = FakeCollection(docs=[{"_id": i, "image": img} for i, img in enumerate(stored_images[:2])])

    response = make_client(collection=collection).post("/api/search", json={"img": data_url})

    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"description", "images"}
    assert data["images"] == stored_images[:2]
    assert data["description"]


def test_no_matches(data_url):
    response = make_client(collection=FakeCollection(docs=[])).post("/api/search", json={"img": data_url})
    assert response.status_code == 200
    assert response.json()["images"] == []


def test_empty_description_content_uses_fallback(data_url, stored_images):
    runtime = FakeRuntime({EMBEDDING_MODEL: embedding_response(), DESCRIPTION_MODEL: {"content": []}})
    collection = FakeCollection(docs=[{"_id": 1, "image": stored_images[0]}])

    response = make_client(runtime=runtime, collection=collection).post("/api/search", json={"img": data_url})

    assert response.status_code == 200
    assert response.json() == {"description": FALLBACK_DESCRIPTION, "images": [stored_images[0]]}


def test_description_failure_returns_500(data_url):
    error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow"}}, "InvokeModel")
    runtime = FakeRuntime({EMBEDDING_MODEL: embedding_response(), DESCRIPTION_MODEL: error})

    response = make_client(runtime=runtime).post("/api/search", json={"img": data_url})
    assert_plain_text(response, 500, "Internal Server Error")


def test_health():
    assert make_client().get("/health").json() == {"status": "ok"}

    response = make_client(healthy=False).get("/health")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


class FakeMongoClient:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeDatabase:
    name = "celebs"

    def __init__(self, collection):
        self.collection = collection
        self.healthy = True
        self.requested = []

    def __getitem__(self, name):
        self.requested.append(name)
        return self.collection


SETTINGS = Settings(mongodb_uri="mongodb://db.example/celebs", mongodb_collection="faces")


def test_startup_failure_serves_nothing(monkeypatch):
    runtimes = []

    def refuse(settings):
        raise UpstreamError("Could not connect to MongoDB: connection refused")

    monkeypatch.setattr(server_app, "connect_database", refuse)
    monkeypatch.setattr(server_app, "create_runtime_client", lambda settings: runtimes.append(settings))

    app = create_app(settings=SETTINGS)
    with pytest.raises(UpstreamError):
        with TestClient(app) as client:
            client.get("/health")

    assert runtimes == []
    assert app.state.pipeline is None


def test_startup_opens_and_closes_shared_resources(monkeypatch, data_url, stored_images):
    mongo = FakeMongoClient()
    db = FakeDatabase(FakeCollection(docs=[{"_id": 1, "image": stored_images[0]}]))
    runtime = FakeRuntime({
        SETTINGS.embedding_model: embedding_response(),
        SETTINGS.description_model: description_response("Close match."),
    })

    monkeypatch.setattr(server_app, "connect_database", lambda settings: (mongo, db))
    monkeypatch.setattr(server_app, "create_runtime_client", lambda settings: runtime)
    monkeypatch.setattr(server_app, "ping", lambda database: database.healthy)

    with TestClient(create_app(settings=SETTINGS)) as client:
        response = client.post("/api/search", json={"img": data_url})
        assert response.status_code == 200
        assert response.json() == {"description": "Close match.", "images": [stored_images[0]]}
        assert db.requested == ["faces"]

        assert client.get("/health").json() == {"status": "ok"}
        db.healthy = False
        assert client.get("/health").status_code == 503

        assert not mongo.closed

    assert mongo.closed
