from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func
from app.db import Base

class HighScore(Base):
    __tablename__ = "high_scores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(80), nullable=False)
    score = Column(Integer, nullable=False, default=0)
    outcome = Column(String(16), nullable=False)           # "completed" | "game_over"
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_high_scores_score", "score"),
    )
