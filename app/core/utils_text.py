from __future__ import annotations
import random
from typing import Iterable, Optional

MAX_SCRAMBLE_TRIES = 100


def same_letters(a: str, b: str) -> bool:
    return sorted(a.lower()) == sorted(b.lower())


def _rotations(word: str):
    for k in range(1, len(word)):
        yield word[k:] + word[:k]
    yield word[::-1]


def scramble_word(word: str, forbidden: Iterable[str] = (), rng: Optional[random.Random] = None,
                  max_tries: int = MAX_SCRAMBLE_TRIES) -> str:
    """
    Permutación aleatoria de las letras de `word` distinta de `word` y de cualquier
    string en `forbidden` (comparación sin mayúsculas).
    Tras `max_tries` intentos prueba rotaciones; si ninguna sirve devuelve `word` tal cual.
    """
    rng = rng or random.Random()
    banned = {w.lower() for w in forbidden}
    banned.add(word.lower())

    if len(set(word.lower())) <= 1:
        return word

    letters = list(word)
    for _ in range(max_tries):
        rng.shuffle(letters)
        candidate = "".join(letters)
        if candidate.lower() not in banned:
            return candidate

    for candidate in _rotations(word):
        if candidate.lower() not in banned:
            return candidate
    return word
