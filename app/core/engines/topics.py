from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple
import random

from app.core.content import ContentItem, TopicEntry
from app.core.engines.base import Question, ValidationPolicy
from app.core.utils_text import scramble_word

# (prompt, answers, letters)
Generated = Tuple[str, Tuple[str, ...], Optional[str]]


def _fill(template: str, **values: str) -> str:
    out = template
    for k, v in values.items():
        out = out.replace("{" + k + "}", v)
    return out


def _gen_alphabet(entry: TopicEntry, item: ContentItem, rng: random.Random) -> Generated:
    letter = item.text
    return _fill(entry.question, letter=letter), (letter,), None


def _gen_word_formation(entry: TopicEntry, item: ContentItem, rng: random.Random) -> Generated:
    answers = tuple(item.accepted)
    target = item.text
    letters = scramble_word(target, forbidden=answers, rng=rng)
    return _fill(entry.question, letters=letters), answers, letters


def _gen_text_item(entry: TopicEntry, item: ContentItem, rng: random.Random) -> Generated:
    prompt = _fill(entry.question, word=item.text, sentence=item.text, letter=item.text)
    return prompt, tuple(item.accepted), None


def _gen_open(entry: TopicEntry, item: ContentItem, rng: random.Random) -> Generated:
    prompt = _fill(entry.question, word=item.text, sentence=item.text, letter=item.text)
    return prompt, (), None


GENERATORS: Dict[str, Callable[[TopicEntry, ContentItem, random.Random], Generated]] = {
    "alphabet-recognition": _gen_alphabet,
    "word-formation": _gen_word_formation,
    "fill-in-the-blank": _gen_text_item,
    "parts-of-speech": _gen_text_item,
    "tense-conversion": _gen_text_item,
    "open-ended": _gen_open,
}


class ContentTopic:
    """Tema alimentado por una entrada del game-data."""

    def __init__(self, entry: TopicEntry, rng: Optional[random.Random] = None):
        self.entry = entry
        self.name = entry.topic
        self.policy = entry.resolved_policy()
        self._rng = rng or random.Random()
        self._generate = GENERATORS[entry.type]

    def _pick(self, local_index: int) -> ContentItem:
        pool = self.entry.data
        if self.entry.selection == "sequential":
            return pool[local_index % len(pool)]
        return pool[self._rng.randrange(len(pool))]

    def generate(self, local_index: int) -> Question:
        item = self._pick(local_index)
        prompt, answers, letters = self._generate(self.entry, item, self._rng)
        if self.policy is ValidationPolicy.open:
            answers = ()
        return Question(
            prompt=prompt,
            policy=self.policy,
            answers=answers,
            letters=letters,
            hint=self.entry.description,
            topic=self.name,
            meta={"type": self.entry.type, "item": item.text},
        )

    def __repr__(self) -> str:
        return f"ContentTopic({self.name!r}, type={self.entry.type!r}, policy={self.policy.value!r})"
