from __future__ import annotations
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

from dotenv import load_dotenv

load_dotenv()

# Raíz del paquete app/  ->  .../app
APP_DIR = Path(__file__).resolve().parents[1]
# Raíz del repo (padre de app/)
REPO_ROOT = APP_DIR.parent

# === Contenido (JSON) de los temas ===
# Puedes sobreescribir con la var de entorno CONTENT_DIR
CONTENT_DIR = Path(os.getenv("CONTENT_DIR", REPO_ROOT / "content")).resolve()
GAME_DATA_FILE = os.getenv("GAME_DATA_FILE", "game-data.json")

WORDSAPI_URL = "https://wordsapiv1.p.rapidapi.com/words/"


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    total_sublevels: int = 500
    max_attempts: int = 3
    points_per_correct: int = 10
    remainder_policy: str = "last"            # "last" | "spread"
    open_empty_consumes_attempt: bool = False
    dictionary_api_url: str = WORDSAPI_URL
    dictionary_api_key: str = ""
    dictionary_api_host: str = "wordsapiv1.p.rapidapi.com"
    dictionary_timeout_sec: float = 5.0
    high_scores_limit: int = 5

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            total_sublevels=int(os.getenv("TOTAL_SUBLEVELS", "500")),
            max_attempts=int(os.getenv("MAX_ATTEMPTS", "3")),
            points_per_correct=int(os.getenv("POINTS_PER_CORRECT", "10")),
            remainder_policy=os.getenv("REMAINDER_POLICY", "last").strip().lower(),
            open_empty_consumes_attempt=_env_bool("OPEN_EMPTY_CONSUMES_ATTEMPT"),
            dictionary_api_url=os.getenv("DICTIONARY_API_URL", WORDSAPI_URL).strip(),
            dictionary_api_key=os.getenv("DICTIONARY_API_KEY", "").strip(),
            dictionary_api_host=os.getenv("DICTIONARY_API_HOST", "wordsapiv1.p.rapidapi.com").strip(),
            dictionary_timeout_sec=float(os.getenv("DICTIONARY_TIMEOUT_SEC", "5")),
            high_scores_limit=int(os.getenv("HIGH_SCORES_LIMIT", "5")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def game_data_path() -> Path:
    return CONTENT_DIR / GAME_DATA_FILE
