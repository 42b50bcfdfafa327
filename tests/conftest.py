"""
Shared test fixtures for all test modules.

Provides:
- db_session: SQLite in-memory database session for testing
- make_content: factory for ContentHistory rows
- client: FastAPI TestClient bound to db_session, with mock evaluators
- Test environment setup (TESTING=true, in-memory database, mock providers)
"""

import os
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# =============================================================================
# Test Environment Configuration
# =============================================================================

# Must be set before anything imports copyloop.config
os.environ['TESTING'] = 'true'
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ['COPYLOOP_EVALUATION_PROVIDERS'] = 'mock'
os.environ.pop('OPENAI_API_KEY', None)
os.environ.pop('ANTHROPIC_API_KEY', None)

# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def db_session() -> Session:
    """
    Create test database session with in-memory SQLite.

    Creates a fresh database with all tables for each test. StaticPool keeps
    the single in-memory connection alive across the TestClient's threads.
    """
    from copyloop.db_models import Base

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    yield session

    # Cleanup
    session.close()
    engine.dispose()


@pytest.fixture
def make_content(db_session):
    """
    Factory for ContentHistory rows.

    Each call gets a created_at one second later than the previous one so
    ordering by recency is deterministic.
    """
    from copyloop.db_models import DBContentHistory

    base_time = datetime(2024, 1, 1, 12, 0, 0)
    counter = {"n": 0}

    def _make(
        output_text="Check out this product",
        niche="skincare",
        tone="friendly",
        content_type="original",
        prompt_text=None,
        user_id=1,
        product_name="Glow Serum"
    ):
        counter["n"] += 1
        content = DBContentHistory(
            user_id=user_id,
            niche=niche,
            tone=tone,
            content_type=content_type,
            product_name=product_name,
            prompt_text=prompt_text,
            output_text=output_text,
            created_at=base_time + timedelta(seconds=counter["n"]),
        )
        db_session.add(content)
        db_session.commit()
        db_session.refresh(content)
        return content

    return _make


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def mock_evaluators():
    """Two mock evaluators standing in for the hosted LLMs."""
    from copyloop.ai_evaluator import MockEvaluationProvider

    return [
        MockEvaluationProvider(model_name="mock-gpt", scores=(8, 9, 7, 10)),
        MockEvaluationProvider(model_name="mock-claude", scores=(6, 7, 7, 8)),
    ]


@pytest.fixture
def client(db_session, mock_evaluators):
    """
    TestClient with the database and evaluator dependencies overridden.

    Created without a `with` block so the lifespan (init_db against the
    module-level engine) does not run.
    """
    from fastapi.testclient import TestClient

    from copyloop.database import get_db
    from copyloop.dependencies import get_evaluation_providers
    from copyloop.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_evaluation_providers] = lambda: mock_evaluators

    yield TestClient(app)

    app.dependency_overrides.clear()
