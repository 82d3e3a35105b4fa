from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol, Tuple


class ValidationPolicy(str, Enum):
    exact = "exact"
    case_insensitive = "case-insensitive"
    multi_choice = "multi-choice"
    open = "open"
    dictionary_backed = "dictionary-backed"


@dataclass(frozen=True)
class Question:
    """
    Pregunta generada para un subnivel.
    - answers: alternativas aceptadas (vacío si la política es `open`).
    - letters: letras mezcladas cuando la pregunta viene de un scramble.
    """
    prompt: str
    policy: ValidationPolicy
    answers: Tuple[str, ...] = ()
    letters: Optional[str] = None
    hint: Optional[str] = None
    topic: str = ""
    meta: dict = field(default_factory=dict, compare=False)

    @property
    def is_open(self) -> bool:
        return self.policy is ValidationPolicy.open


class Topic(Protocol):
    """
    Un tema: nombre visible + generador de preguntas.
    El registro decide qué rango de subniveles le toca.
    """

    name: str

    def generate(self, local_index: int) -> Question:
        """Devuelve una pregunta nueva; local_index es 0-based dentro del rango del tema."""
        ...
