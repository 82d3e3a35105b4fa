from pydantic import BaseModel
from typing import Optional, Literal

RunStatusOut = Literal["awaiting_start", "in_sublevel", "advancing", "game_over", "completed"]
OutcomeOut = Literal["correct", "incorrect", "needs_external_check"]

class RunCreateIn(BaseModel):
    playerName: str

class AnswerIn(BaseModel):
    answer: Optional[str] = ""

class QuestionOut(BaseModel):
    sublevel: int
    topic: str
    prompt: str
    hint: Optional[str] = None
    policy: str

class RunStateOut(BaseModel):
    runId: str
    playerName: str
    status: RunStatusOut
    currentSublevel: int
    totalSublevels: int
    score: int
    attemptsRemaining: int
    progressPct: int
    isNewHighScore: bool = False
    question: Optional[QuestionOut] = None

class AnswerOut(BaseModel):
    outcome: OutcomeOut
    message: str
    attemptConsumed: bool
    state: RunStateOut
