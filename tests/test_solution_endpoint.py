"""
Integration tests for POST /solution and POST /ai/analyze.
"""
import json
import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from recode.main import app
from recode.api.deps import get_llm_provider, get_solution_cache
from recode.core.security import create_access_token
from recode.db.base import Base
from recode.db.models.user import User
from recode.db.session import get_db
from recode.llm.provider import LLMResponse
from recode.services.solution_cache import build_solution_cache


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

SOLUTION = {
    "problemStatement": "Two Sum",
    "bruteForce": {"name": "Brute", "code": "```python\npass\n```"},
    "better": None,
    "optimal": {"name": "Hash map", "code": "pass"},
}


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def provider():
    mock = MagicMock()
    mock.chat.return_value = LLMResponse(content=json.dumps(SOLUTION), model="gpt-4o-mini")
    return mock


@pytest.fixture
def client(provider):
    """Create test client."""
    cache = build_solution_cache(TestSessionLocal, redis_url=None)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_solution_cache] = lambda: cache
    app.dependency_overrides[get_llm_provider] = lambda: provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers_for(plan):
    with TestSessionLocal() as db:
        user = User(email=f"{plan}@example.com", plan=plan)
        db.add(user)
        db.commit()
    return {"Authorization": f"Bearer {create_access_token({'sub': f'{plan}@example.com'})}"}


def test_solution_generated_then_cached(client, provider):
    headers = headers_for("pro")

    first = client.post("/solution", json={"question_name": "Two Sum", "language": "python"}, headers=headers)
    assert first.status_code == 200
    assert first.json()["from_cache"] is False
    assert first.json()["tier"] == "generated"
    assert first.json()["data"]["bruteForce"]["code"] == "pass"

    second = client.post("/solution", json={"question_name": "two-sum", "language": "Python"}, headers=headers)
    assert second.status_code == 200
    assert second.json()["from_cache"] is True
    assert second.json()["hits"] == 1

    assert provider.chat.call_count == 1
    # Cache hits still consume quota
    usage = client.get("/usage", headers=headers).json()
    assert usage["usage"]["getSolution"]["used"] == 2


def test_solution_with_description_meters_variant(client):
    headers = headers_for("free")

    response = client.post(
        "/solution",
        json={"question_name": "Two Sum", "language": "python", "problem_description": "Input is sorted"},
        headers=headers,
    )
    assert response.status_code == 200

    usage = client.get("/usage", headers=headers).json()["usage"]
    assert usage["variant"]["used"] == 1
    assert usage["getSolution"]["used"] == 0


def test_solution_quota_blocks_before_generation(client, provider):
    headers = headers_for("trial")

    assert client.post("/solution", json={"question_name": "Two Sum", "language": "python"}, headers=headers).status_code == 200
    response = client.post("/solution", json={"question_name": "3Sum", "language": "python"}, headers=headers)

    assert response.status_code == 429
    assert provider.chat.call_count == 1


def test_solution_generation_failure(client, provider):
    provider.chat.return_value = LLMResponse(content="I cannot help with that", model="gpt-4o-mini")

    response = client.post("/solution", json={"question_name": "Two Sum", "language": "python"}, headers=headers_for("pro"))

    assert response.status_code == 502
    assert response.json()["error"] == "generation_failed"


def test_solution_requires_authentication(client):
    response = client.post("/solution", json={"question_name": "Two Sum", "language": "python"})
    assert response.status_code == 401


def test_analyze_meters_add_solution(client, provider):
    provider.chat.return_value = LLMResponse(
        content=json.dumps({"title": "Two Sum", "timeComplexity": "O(n)", "revisionNotes": ["hash map"]}),
        model="gpt-4o-mini",
    )
    headers = headers_for("free")

    for _ in range(2):
        response = client.post("/ai/analyze", json={"code": "def f(): pass", "language": "python"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["type"] == "analysis"
        assert response.json()["data"]["timeComplexity"] == "O(n)"

    response = client.post("/ai/analyze", json={"code": "def f(): pass", "language": "python"}, headers=headers)
    assert response.status_code == 429
    assert response.json()["details"]["action"] == "addSolution"


def test_health_reports_database_and_distributed_cache(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["database"] == "connected"
    assert data["distributed_cache"] == "unavailable"


@pytest.mark.parametrize("code", ["", "   \n\t"])
def test_analyze_rejects_empty_code_without_metering(client, provider, code):
    headers = headers_for("trial")

    response = client.post("/ai/analyze", json={"code": code, "language": "python"}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert provider.chat.call_count == 0
    assert client.get("/usage", headers=headers).json()["usage"]["addSolution"]["used"] == 0


def test_analyze_passes_problem_url_to_model(client, provider):
    provider.chat.return_value = LLMResponse(content=json.dumps({"title": "Two Sum"}), model="gpt-4o-mini")

    response = client.post(
        "/ai/analyze",
        json={"code": "def f(): pass", "language": "python", "problem_url": "https://leetcode.com/problems/two-sum/"},
        headers=headers_for("pro"),
    )

    assert response.status_code == 200
    messages = provider.chat.call_args.kwargs["messages"]
    assert "https://leetcode.com/problems/two-sum/" in messages[1]["content"]


@pytest.mark.parametrize("question_name", ["   ", "???", "-_-"])
def test_solution_rejects_names_without_letters_or_digits(client, provider, question_name):
    headers = headers_for("pro")

    response = client.post("/solution", json={"question_name": question_name, "language": "python"}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert provider.chat.call_count == 0
    assert client.get("/usage", headers=headers).json()["usage"]["getSolution"]["used"] == 0


def test_solution_rejects_blank_language(client, provider):
    headers = headers_for("pro")

    response = client.post("/solution", json={"question_name": "Two Sum", "language": "  "}, headers=headers)

    assert response.status_code == 400
    assert client.get("/usage", headers=headers).json()["usage"]["getSolution"]["used"] == 0
