from contextlib import contextmanager
from dataclasses import asdict
import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.errors import InvalidNameError, NoActiveQuestionError, OutOfRangeError, RunStateError
from app.core.progression import ProgressionController
from app.core.validation import Outcome
from app.deps import get_run_registry
from app.domain.runs.service import RunNotFound, RunRegistry
from app.schemas.run import AnswerIn, AnswerOut, QuestionOut, RunCreateIn, RunStateOut

log = logging.getLogger("runs")

router = APIRouter(prefix="/runs", tags=["runs"])

@contextmanager
def _core_errors():
    """Traduce errores del núcleo a HTTP."""
    try:
        yield
    except RunNotFound:
        raise HTTPException(404, "Partida no encontrada")
    except InvalidNameError as e:
        raise HTTPException(422, str(e))
    except OutOfRangeError as e:
        raise HTTPException(400, str(e))
    except (NoActiveQuestionError, RunStateError) as e:
        raise HTTPException(409, str(e))

def _state_out(run_id: str, ctrl: ProgressionController) -> RunStateOut:
    s = ctrl.state
    view = ctrl.current_view()
    return RunStateOut(
        runId=run_id,
        playerName=s.player_name,
        status=s.status.value,
        currentSublevel=s.current_sublevel,
        totalSublevels=ctrl.total_sublevels,
        score=s.score,
        attemptsRemaining=s.attempts_remaining,
        progressPct=ctrl.progress_pct,
        isNewHighScore=s.is_new_high_score,
        question=QuestionOut(**asdict(view)) if view else None,
    )

@router.post("", response_model=RunStateOut, status_code=201)
def start_run(body: RunCreateIn, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        run_id, ctrl, _ = runs.create(body.playerName)
    return _state_out(run_id, ctrl)

@router.get("/{run_id}", response_model=RunStateOut)
def get_run(run_id: str, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        ctrl = runs.get(run_id)
    return _state_out(run_id, ctrl)

@router.post("/{run_id}/answer", response_model=AnswerOut)
def submit_answer(run_id: str, body: AnswerIn, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        ctrl = runs.get(run_id)
        result = ctrl.submit_answer(body.answer)
    consumed = result.outcome is Outcome.incorrect and result.consumes_attempt
    return AnswerOut(
        outcome=result.outcome.value,
        message=result.message,
        attemptConsumed=consumed,
        state=_state_out(run_id, ctrl),
    )

@router.post("/{run_id}/advance", response_model=RunStateOut)
def advance(run_id: str, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        ctrl = runs.get(run_id)
        ctrl.advance()
    return _state_out(run_id, ctrl)

@router.post("/{run_id}/sublevel/{n}", response_model=RunStateOut)
def start_sublevel(run_id: str, n: int, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        ctrl = runs.get(run_id)
        ctrl.start_sublevel(n)
    return _state_out(run_id, ctrl)

@router.post("/{run_id}/restart", response_model=RunStateOut)
def restart(run_id: str, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        ctrl = runs.get(run_id)
        ctrl.restart()
    return _state_out(run_id, ctrl)

@router.delete("/{run_id}", status_code=204)
def abandon(run_id: str, runs: RunRegistry = Depends(get_run_registry)):
    with _core_errors():
        runs.drop(run_id)
    log.info("run %s abandoned", run_id)
