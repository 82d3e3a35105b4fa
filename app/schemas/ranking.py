from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class HighScoreRow(BaseModel):
    rank: int
    name: str
    score: int
    outcome: str
    createdAt: Optional[datetime] = None
