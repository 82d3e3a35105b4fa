from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.engines.base import Question, ValidationPolicy
from app.core.utils_text import same_letters

MSG_CORRECT = "Correct!"
MSG_INCORRECT = "Incorrect"
MSG_EMPTY = "enter an answer"
MSG_CASE = "case mismatch"
MSG_LETTERS = "use exactly the given letters"
MSG_NOT_A_WORD = "not a recognised word"
MSG_DICT_DOWN = "could not verify the word, try again"


class Outcome(str, Enum):
    correct = "correct"
    incorrect = "incorrect"
    needs_external_check = "needs_external_check"


@dataclass(frozen=True)
class AnswerResult:
    outcome: Outcome
    message: str
    consumes_attempt: bool = True
    word: Optional[str] = None   # palabra a verificar cuando outcome == needs_external_check

    @property
    def is_correct(self) -> bool:
        return self.outcome is Outcome.correct


def _correct() -> AnswerResult:
    return AnswerResult(Outcome.correct, MSG_CORRECT, consumes_attempt=False)


def _incorrect(message: str = MSG_INCORRECT) -> AnswerResult:
    return AnswerResult(Outcome.incorrect, message)


def validate_answer(question: Question, raw: Optional[str], *, open_empty_consumes_attempt: bool = False) -> AnswerResult:
    """
    Valida localmente una respuesta. Orden de precedencia:
    open -> multi-choice -> exact -> case-insensitive -> dictionary-backed.
    La política dictionary-backed nunca devuelve `correct` aquí: si el match local pasa,
    devuelve `needs_external_check` y el controlador consulta el diccionario.
    """
    answer = (raw or "").strip()
    policy = question.policy

    if policy is ValidationPolicy.open:
        if not answer:
            return AnswerResult(Outcome.incorrect, MSG_EMPTY, consumes_attempt=open_empty_consumes_attempt)
        return _correct()

    if policy is ValidationPolicy.multi_choice:
        return _correct() if answer in question.answers else _incorrect()

    if policy is ValidationPolicy.exact:
        if answer in question.answers:
            return _correct()
        low = answer.lower()
        if answer and any(low == a.lower() for a in question.answers):
            return _incorrect(MSG_CASE)
        return _incorrect()

    if policy is ValidationPolicy.case_insensitive:
        low = answer.lower()
        return _correct() if any(low == a.lower() for a in question.answers) else _incorrect()

    if policy is ValidationPolicy.dictionary_backed:
        if not answer or not answer.isalpha():
            return _incorrect()
        if question.letters and not same_letters(answer, question.letters):
            return _incorrect(MSG_LETTERS)
        return AnswerResult(Outcome.needs_external_check, "checking dictionary", consumes_attempt=False, word=answer)

    raise ValueError(f"política desconocida: {policy!r}")
