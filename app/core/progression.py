from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Protocol
import logging
import threading

from app.core.dictionary import WordChecker
from app.core.engines.base import Question
from app.core.engines.registry import TopicRegistry
from app.core.errors import (
    InvalidNameError,
    NoActiveQuestionError,
    OutOfRangeError,
    RunStateError,
    ValidationTransportError,
)
from app.core.validation import (
    MSG_CORRECT,
    MSG_DICT_DOWN,
    MSG_NOT_A_WORD,
    AnswerResult,
    Outcome,
    validate_answer,
)

log = logging.getLogger(__name__)


class RunStatus(str, Enum):
    awaiting_start = "awaiting_start"
    in_sublevel = "in_sublevel"
    advancing = "advancing"
    game_over = "game_over"
    completed = "completed"


TERMINAL = frozenset({RunStatus.game_over, RunStatus.completed})


@dataclass(frozen=True)
class HighScoreEntry:
    name: str
    score: int
    timestamp: datetime
    outcome: str = RunStatus.completed.value


class HighScoreSink(Protocol):
    def append(self, entry: HighScoreEntry) -> None:
        ...

    def list(self) -> List[HighScoreEntry]:
        """Ordenado por score descendente."""
        ...


@dataclass(frozen=True)
class QuestionView:
    """Lo que ve el jugador: nunca incluye la respuesta esperada."""
    sublevel: int
    topic: str
    prompt: str
    hint: Optional[str]
    policy: str

    @classmethod
    def of(cls, question: Question, sublevel: int) -> "QuestionView":
        return cls(
            sublevel=sublevel,
            topic=question.topic,
            prompt=question.prompt,
            hint=question.hint,
            policy=question.policy.value,
        )


@dataclass
class ProgressionState:
    player_name: str = ""
    current_sublevel: int = 1
    score: int = 0
    attempts_remaining: int = 0
    status: RunStatus = RunStatus.awaiting_start
    question: Optional[Question] = None
    score_recorded: bool = False
    is_new_high_score: bool = False


class ProgressionController:
    """
    Máquina de estados de una partida:
      awaiting_start -> in_sublevel -> {in_sublevel (reintento), advancing, game_over, completed}
    Dueña exclusiva de su ProgressionState; las llamadas que mutan estado se serializan con un lock.
    """

    def __init__(
        self,
        registry: TopicRegistry,
        dictionary: WordChecker,
        sink: Optional[HighScoreSink] = None,
        *,
        max_attempts: int = 3,
        points_per_correct: int = 10,
        open_empty_consumes_attempt: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts debe ser >= 1")
        self.registry = registry
        self.dictionary = dictionary
        self.sink = sink
        self.max_attempts = max_attempts
        self.points_per_correct = points_per_correct
        self.open_empty_consumes_attempt = open_empty_consumes_attempt
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))
        self._state = ProgressionState()
        self._lock = threading.RLock()

    # ---------- lectura ----------

    @property
    def total_sublevels(self) -> int:
        return self.registry.total_sublevels

    @property
    def state(self) -> ProgressionState:
        """Copia del estado; mutarla no afecta a la partida."""
        with self._lock:
            return replace(self._state)

    @property
    def status(self) -> RunStatus:
        with self._lock:
            return self._state.status

    @property
    def progress_pct(self) -> int:
        with self._lock:
            s = self._state
            if s.status is RunStatus.completed:
                return 100
            return round(100.0 * (s.current_sublevel - 1) / max(1, self.total_sublevels))

    def current_view(self) -> Optional[QuestionView]:
        with self._lock:
            q = self._state.question
            return QuestionView.of(q, self._state.current_sublevel) if q else None

    # ---------- operaciones ----------

    def start_run(self, player_name: str) -> QuestionView:
        name = (player_name or "").strip()
        if not name:
            raise InvalidNameError("Please enter your name")
        with self._lock:
            if self._state.status in (RunStatus.in_sublevel, RunStatus.advancing):
                raise RunStateError("la partida ya está en curso")
            self._state = ProgressionState(
                player_name=name,
                current_sublevel=1,
                score=0,
                attempts_remaining=self.max_attempts,
                status=RunStatus.in_sublevel,
            )
            log.info("run started player=%s total=%s", name, self.total_sublevels)
            return self._enter_sublevel(1)

    def start_sublevel(self, n: int) -> QuestionView:
        with self._lock:
            s = self._state
            if s.status in TERMINAL:
                raise RunStateError(f"partida terminada ({s.status.value}); usa restart()")
            if s.status is RunStatus.awaiting_start:
                raise RunStateError("la partida no ha empezado; usa start_run()")
            if n < 1 or n > self.total_sublevels:
                raise OutOfRangeError(f"sublevel {n} fuera de [1, {self.total_sublevels}]")
            if n < s.current_sublevel:
                raise RunStateError(f"no se puede retroceder de {s.current_sublevel} a {n}")
            if s.status is RunStatus.advancing and n == s.current_sublevel:
                raise RunStateError(f"subnivel {n} ya resuelto; usa advance()")
            return self._enter_sublevel(n)

    def submit_answer(self, raw: Optional[str]) -> AnswerResult:
        with self._lock:
            s = self._state
            if s.status in TERMINAL:
                raise RunStateError(f"partida terminada ({s.status.value})")
            if s.question is None:
                raise NoActiveQuestionError("no hay pregunta activa")

            result = validate_answer(
                s.question, raw, open_empty_consumes_attempt=self.open_empty_consumes_attempt
            )
            if result.outcome is Outcome.needs_external_check:
                result = self._check_word(result.word or "")

            if result.is_correct:
                self._on_correct()
            elif result.consumes_attempt:
                self._on_incorrect()
            return result

    def advance(self) -> Optional[QuestionView]:
        """Pasa al siguiente subnivel tras un acierto. Devuelve None si la partida se completó."""
        with self._lock:
            s = self._state
            if s.status is not RunStatus.advancing:
                raise RunStateError(f"advance() inválido en estado {s.status.value}")
            if s.current_sublevel >= self.total_sublevels:
                self._finish(RunStatus.completed)
                return None
            return self._enter_sublevel(s.current_sublevel + 1)

    def restart(self) -> QuestionView:
        with self._lock:
            s = self._state
            if s.status not in TERMINAL:
                raise RunStateError(f"restart() sólo desde game_over/completed, no {s.status.value}")
            self._state = ProgressionState(
                player_name=s.player_name,
                current_sublevel=1,
                score=0,
                attempts_remaining=self.max_attempts,
                status=RunStatus.in_sublevel,
            )
            log.info("run restarted player=%s", s.player_name)
            return self._enter_sublevel(1)

    # ---------- internos ----------

    def _enter_sublevel(self, n: int) -> QuestionView:
        question = self.registry.generate(n)
        s = self._state
        s.current_sublevel = n
        s.attempts_remaining = self.max_attempts
        s.question = question
        s.status = RunStatus.in_sublevel
        return QuestionView.of(question, n)

    def _check_word(self, word: str) -> AnswerResult:
        try:
            exists = self.dictionary.word_exists(word)
        except ValidationTransportError as e:
            log.warning("dictionary lookup failed for %r: %s", word, e)
            return AnswerResult(Outcome.incorrect, MSG_DICT_DOWN)
        except Exception as e:
            log.warning("dictionary lookup crashed for %r: %s", word, e)
            return AnswerResult(Outcome.incorrect, MSG_DICT_DOWN)
        if exists:
            return AnswerResult(Outcome.correct, MSG_CORRECT, consumes_attempt=False)
        return AnswerResult(Outcome.incorrect, MSG_NOT_A_WORD)

    def _on_correct(self) -> None:
        s = self._state
        s.score += self.points_per_correct
        s.question = None
        if s.current_sublevel >= self.total_sublevels:
            self._finish(RunStatus.completed)
        else:
            s.status = RunStatus.advancing

    def _on_incorrect(self) -> None:
        s = self._state
        s.attempts_remaining = max(0, s.attempts_remaining - 1)
        if s.attempts_remaining == 0:
            self._finish(RunStatus.game_over)

    def _finish(self, status: RunStatus) -> None:
        s = self._state
        s.status = status
        s.question = None
        log.info("run %s player=%s score=%s sublevel=%s", status.value, s.player_name, s.score, s.current_sublevel)
        if s.score_recorded or self.sink is None:
            return
        entry = HighScoreEntry(name=s.player_name, score=s.score, timestamp=self._clock(), outcome=status.value)
        try:
            previous = self.sink.list()
            s.is_new_high_score = all(entry.score > p.score for p in previous)
            self.sink.append(entry)
            s.score_recorded = True
        except Exception as e:
            log.error("high score could not be saved for %s: %s", s.player_name, e)
