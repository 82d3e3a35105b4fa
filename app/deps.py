from functools import lru_cache
from typing import List

from app.core.content import TopicEntry, load_game_data
from app.core.dictionary import build_dictionary
from app.core.engines.base import ValidationPolicy
from app.core.engines.registry import TopicRegistry, build_registry
from app.core.progression import ProgressionController
from app.core.settings import Settings, get_settings
from app.db import SessionLocal, get_db
from app.domain.highscores.service import SqlHighScoreSink
from app.domain.runs.service import RunRegistry

__all__ = ["get_db", "get_settings", "get_topic_registry", "get_run_registry"]


def _offline_words(entries: List[TopicEntry]) -> List[str]:
    words: List[str] = []
    for e in entries:
        if e.resolved_policy() is ValidationPolicy.dictionary_backed:
            for item in e.data:
                words += item.accepted
    return words


@lru_cache(maxsize=1)
def get_topic_entries() -> List[TopicEntry]:
    return load_game_data()


@lru_cache(maxsize=1)
def get_topic_registry() -> TopicRegistry:
    s = get_settings()
    return build_registry(get_topic_entries(), s.total_sublevels, s.remainder_policy)


def make_run_registry(settings: Settings, registry: TopicRegistry, dictionary, sink) -> RunRegistry:
    def factory() -> ProgressionController:
        return ProgressionController(
            registry,
            dictionary,
            sink,
            max_attempts=settings.max_attempts,
            points_per_correct=settings.points_per_correct,
            open_empty_consumes_attempt=settings.open_empty_consumes_attempt,
        )
    return RunRegistry(factory)


@lru_cache(maxsize=1)
def get_run_registry() -> RunRegistry:
    s = get_settings()
    dictionary = build_dictionary(s, offline_words=_offline_words(get_topic_entries()))
    return make_run_registry(s, get_topic_registry(), dictionary, SqlHighScoreSink(SessionLocal))
