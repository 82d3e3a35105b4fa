from __future__ import annotations
from collections import OrderedDict
from typing import Callable, Tuple
import logging
import threading
import uuid

from app.core.progression import TERMINAL, ProgressionController, QuestionView

log = logging.getLogger(__name__)


class RunNotFound(Exception): ...


class RunRegistry:
    """
    Partidas vivas en memoria, una ProgressionController por run id.
    Cada controlador serializa sus propias llamadas; aquí sólo se protege el dict.

    `max_runs` es un tope real: al llenarse se descartan primero las partidas
    terminadas y, si no basta, las que llevan más tiempo sin tocarse.
    """

    def __init__(self, controller_factory: Callable[[], ProgressionController], max_runs: int = 10_000):
        if max_runs < 1:
            raise ValueError("max_runs debe ser >= 1")
        self._factory = controller_factory
        # orden = último uso (el más viejo primero)
        self._runs: "OrderedDict[str, ProgressionController]" = OrderedDict()
        self._lock = threading.Lock()
        self.max_runs = max_runs

    def create(self, player_name: str) -> Tuple[str, ProgressionController, QuestionView]:
        ctrl = self._factory()
        first = ctrl.start_run(player_name)   # InvalidNameError sube tal cual
        run_id = uuid.uuid4().hex
        with self._lock:
            if len(self._runs) >= self.max_runs:
                self._evict()
            self._runs[run_id] = ctrl
        return run_id, ctrl, first

    def get(self, run_id: str) -> ProgressionController:
        with self._lock:
            ctrl = self._runs.get(run_id)
            if ctrl is not None:
                self._runs.move_to_end(run_id)
        if ctrl is None:
            raise RunNotFound(run_id)
        return ctrl

    def drop(self, run_id: str) -> None:
        with self._lock:
            if self._runs.pop(run_id, None) is None:
                raise RunNotFound(run_id)

    def _evict(self) -> None:
        done = [rid for rid, c in self._runs.items() if c.status in TERMINAL]
        for rid in done:
            del self._runs[rid]
        idle = 0
        while len(self._runs) >= self.max_runs:
            self._runs.popitem(last=False)
            idle += 1
        log.info("runs evicted finished=%s idle=%s live=%s", len(done), idle, len(self._runs))

    def __len__(self) -> int:
        return len(self._runs)
