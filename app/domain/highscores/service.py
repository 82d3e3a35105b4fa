from typing import Callable, List, Optional
from sqlalchemy import select, desc, asc, func
from sqlalchemy.orm import Session

from app.core.progression import HighScoreEntry
from app.models.high_score import HighScore

# Orden del ranking: puntos DESC, luego id ASC (desempate estable: gana quien llegó antes).
ORDERING = (desc(HighScore.score), asc(HighScore.id))


def _to_entry(row: HighScore) -> HighScoreEntry:
    return HighScoreEntry(name=row.name, score=int(row.score or 0), timestamp=row.created_at, outcome=row.outcome)


def add_high_score(db: Session, entry: HighScoreEntry) -> HighScore:
    """Sólo se agregan filas; nunca se modifica una existente."""
    row = HighScore(name=entry.name, score=int(entry.score), outcome=entry.outcome, created_at=entry.timestamp)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def top_high_scores(db: Session, limit: Optional[int] = None) -> List[HighScore]:
    q = select(HighScore).order_by(*ORDERING)
    if limit is not None:
        q = q.limit(limit)
    return list(db.execute(q).scalars().all())


class SqlHighScoreSink:
    """
    HighScoreSink sobre SQLAlchemy. Abre una sesión corta por operación,
    porque el controlador vive más que cualquier request.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def append(self, entry: HighScoreEntry) -> None:
        db = self._session_factory()
        try:
            add_high_score(db, entry)
        finally:
            db.close()

    def list(self) -> List[HighScoreEntry]:
        db = self._session_factory()
        try:
            return [_to_entry(r) for r in top_high_scores(db)]
        finally:
            db.close()


def ranked_high_scores(db: Session, limit: int = 5) -> list:
    """Filas (rank, name, score, outcome, created_at); empates comparten rank."""
    rank_col = func.rank().over(order_by=desc(HighScore.score)).label("rank")
    q = (
        db.query(rank_col, HighScore.name, HighScore.score, HighScore.outcome, HighScore.created_at)
        .order_by(*ORDERING)
        .limit(limit)
    )
    return q.all()
