from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union
import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from app.core.engines.base import ValidationPolicy
from app.core.errors import ContentError
from app.core.settings import game_data_path

log = logging.getLogger(__name__)

QuestionType = Literal[
    "alphabet-recognition",
    "word-formation",
    "fill-in-the-blank",
    "parts-of-speech",
    "tense-conversion",
    "open-ended",
]

# Placeholders admitidos por tipo (al menos uno debe aparecer en la plantilla)
PLACEHOLDERS: Dict[str, tuple] = {
    "alphabet-recognition": ("{letter}",),
    "word-formation": ("{letters}",),
    "fill-in-the-blank": ("{sentence}",),
    "parts-of-speech": ("{word}", "{sentence}"),
    "tense-conversion": ("{word}", "{sentence}"),
    "open-ended": ("{word}", "{sentence}", "{letter}"),
}


class ContentItem(BaseModel):
    text: str
    answers: List[str] = Field(default_factory=list)

    @field_validator("text")
    @classmethod
    def _text_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("item text vacío")
        return v

    @property
    def accepted(self) -> List[str]:
        return [a.strip() for a in self.answers if a.strip()] or [self.text]


class TopicEntry(BaseModel):
    """Una entrada del game-data: un tema con su plantilla y su banco de datos."""
    model_config = ConfigDict(populate_by_name=True)

    sublevel: Optional[int] = None
    topic: str
    question: str
    type: QuestionType
    data: List[ContentItem]
    answer_type: Optional[str] = Field(default=None, alias="answerType")
    api_validation: bool = Field(default=False, alias="apiValidation")
    policy: Optional[ValidationPolicy] = None
    selection: Literal["random", "sequential"] = "random"
    description: Optional[str] = None

    @field_validator("data", mode="before")
    @classmethod
    def _coerce_items(cls, v: Any) -> Any:
        if not isinstance(v, list) or not v:
            raise ValueError("data debe ser una lista no vacía")
        return [{"text": x} if isinstance(x, str) else x for x in v]

    @model_validator(mode="after")
    def _check_template(self) -> "TopicEntry":
        allowed = PLACEHOLDERS[self.type]
        if not any(p in self.question for p in allowed):
            raise ValueError(f"la plantilla de '{self.type}' necesita uno de {allowed}")
        return self

    def resolved_policy(self) -> ValidationPolicy:
        """
        Política explícita si viene; si no, se traduce desde los flags heredados
        (answerType / apiValidation / type). Nunca se deduce de la forma de `data`.
        """
        if self.policy is not None:
            return self.policy
        if self.type == "open-ended":
            return ValidationPolicy.open
        if self.api_validation:
            return ValidationPolicy.dictionary_backed
        if (self.answer_type or "").lower() == "case-sensitive":
            return ValidationPolicy.exact
        return ValidationPolicy.case_insensitive


def _extract_entries(doc: Union[list, dict]) -> list:
    if isinstance(doc, list):
        return doc
    if isinstance(doc, dict):
        for key in ("topics", "beginnerLevels"):
            if isinstance(doc.get(key), list):
                return doc[key]
    raise ContentError("game-data: se esperaba una lista o un objeto con 'topics'/'beginnerLevels'")


def parse_game_data(doc: Union[list, dict]) -> List[TopicEntry]:
    raw = _extract_entries(doc)
    entries: List[TopicEntry] = []
    for i, obj in enumerate(raw):
        try:
            entries.append(TopicEntry.model_validate(obj))
        except ValidationError as e:
            log.error("game-data entry %s invalid: %s", i, e)
            raise ContentError(f"entrada {i} inválida: {e.errors()[0].get('msg')}") from e
    if not entries:
        raise ContentError("game-data sin temas")
    # orden estable: primero las que traen sublevel, por sublevel; luego el resto en su orden
    return sorted(entries, key=lambda e: (e.sublevel is None, e.sublevel or 0))


def load_game_data(path: Optional[Path] = None) -> List[TopicEntry]:
    p = Path(path) if path else game_data_path()
    if not p.exists():
        log.error("game-data not found: %s", p)
        raise ContentError(f"Contenido no encontrado: {p}")
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        log.error("game-data is not valid JSON (%s): %s", p, e)
        raise ContentError(f"JSON inválido en {p}") from e
    return parse_game_data(doc)
