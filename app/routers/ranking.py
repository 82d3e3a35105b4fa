from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.settings import get_settings
from app.db import get_db
from app.domain.highscores.service import ranked_high_scores
from app.schemas.ranking import HighScoreRow

router = APIRouter(prefix="/ranking", tags=["ranking"])

@router.get("", response_model=list[HighScoreRow])
def high_scores(limit: int | None = Query(default=None, ge=1, le=100), db: Session = Depends(get_db)):
    """
    Top de puntuaciones (por defecto HIGH_SCORES_LIMIT): score DESC, empates comparten rank.
    """
    rows = ranked_high_scores(db, limit or get_settings().high_scores_limit)
    return [
        HighScoreRow(
            rank=int(r[0]),
            name=r[1],
            score=int(r[2] or 0),
            outcome=r[3],
            createdAt=r[4],
        )
        for r in rows
    ]
