"""
Fixtures de prueba para Lingua.

La base de datos apunta a un SQLite temporal ANTES de importar app.db.
El diccionario remoto nunca se llama: se sustituye por FakeDictionary.
"""

from __future__ import annotations

import os
import random
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

_TMP = tempfile.mkdtemp(prefix="lingua-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/test.db"
os.environ.setdefault("CONTENT_DIR", str(ROOT / "content"))

from app.core.content import parse_game_data  # noqa: E402
from app.core.engines.registry import build_registry  # noqa: E402
from app.core.errors import ValidationTransportError  # noqa: E402
from app.core.progression import ProgressionController  # noqa: E402


class FakeDictionary:
    """Diccionario en memoria; `fail=True` simula la caída del servicio."""

    def __init__(self, words=(), fail=False, crash=False):
        self.words = {w.lower() for w in words}
        self.fail = fail
        self.crash = crash
        self.calls = []

    def word_exists(self, word):
        self.calls.append(word)
        if self.fail:
            raise ValidationTransportError("timeout")
        if self.crash:
            raise RuntimeError("boom")
        return word.lower() in self.words


class MemorySink:
    def __init__(self):
        self.entries = []

    def append(self, entry):
        self.entries.append(entry)

    def list(self):
        return sorted(self.entries, key=lambda e: -e.score)


def topic(name, type_, question, data, **extra):
    return {"topic": name, "type": type_, "question": question, "data": data, **extra}


BASIC_CONTENT = [
    topic("Letters", "alphabet-recognition", "Type the capital letter {letter}", ["A"], answerType="case-sensitive"),
    topic("Past Tense", "tense-conversion", "Past of '{word}'", [{"text": "go", "answers": ["went"]}]),
    topic("Writing", "open-ended", "Write a sentence with '{word}'", ["rain"]),
]


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def basic_entries():
    return parse_game_data(BASIC_CONTENT)


@pytest.fixture
def basic_registry(basic_entries, rng):
    return build_registry(basic_entries, total_sublevels=3, rng=rng)


@pytest.fixture
def fake_dictionary():
    return FakeDictionary(words=["listen", "silent", "enlist"])


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def controller(basic_registry, fake_dictionary, sink):
    return ProgressionController(basic_registry, fake_dictionary, sink, max_attempts=3, points_per_correct=10)


@pytest.fixture
def make_controller(fake_dictionary, sink, rng):
    """Construye un controlador a partir de contenido arbitrario."""
    def _make(content, total_sublevels=None, **kwargs):
        entries = parse_game_data(content)
        registry = build_registry(entries, total_sublevels or len(entries), rng=rng)
        kwargs.setdefault("max_attempts", 3)
        kwargs.setdefault("points_per_correct", 10)
        return ProgressionController(
            registry,
            kwargs.pop("dictionary", fake_dictionary),
            kwargs.pop("sink", sink),
            **kwargs,
        )
    return _make


@pytest.fixture
def db_session():
    from app.db import SessionLocal, init_db
    from app.models.high_score import HighScore

    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.query(HighScore).delete()
        db.commit()
        db.close()


@pytest.fixture
def client(basic_registry, fake_dictionary, db_session):
    from fastapi.testclient import TestClient

    from app.core.settings import Settings
    from app.db import SessionLocal
    from app.deps import get_run_registry, make_run_registry
    from app.domain.highscores.service import SqlHighScoreSink
    from app.main import app

    runs = make_run_registry(
        Settings(total_sublevels=3, max_attempts=3, points_per_correct=10),
        basic_registry,
        fake_dictionary,
        SqlHighScoreSink(SessionLocal),
    )
    app.dependency_overrides[get_run_registry] = lambda: runs
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
