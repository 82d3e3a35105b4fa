"""Tests for the progression state machine."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from app.core.content import parse_game_data
from app.core.engines.registry import build_registry
from app.core.errors import InvalidNameError, NoActiveQuestionError, OutOfRangeError, RunStateError
from app.core.progression import HighScoreEntry, ProgressionController, RunStatus
from app.core.validation import MSG_CASE, MSG_DICT_DOWN, MSG_EMPTY, MSG_NOT_A_WORD, Outcome

from conftest import FakeDictionary, MemorySink, topic


# ── start ───────────────────────────────────────────────────


class TestStartRun:
    def test_initial_state(self, controller):
        assert controller.status is RunStatus.awaiting_start
        assert controller.current_view() is None

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_rejected_without_state_change(self, controller, name):
        with pytest.raises(InvalidNameError):
            controller.start_run(name)
        assert controller.status is RunStatus.awaiting_start

    def test_start_enters_first_sublevel(self, controller):
        view = controller.start_run("  Ana ")
        s = controller.state
        assert s.player_name == "Ana"
        assert s.status is RunStatus.in_sublevel
        assert s.current_sublevel == 1
        assert s.score == 0
        assert s.attempts_remaining == 3
        assert view.sublevel == 1
        assert view.topic == "Letters"
        assert view.prompt == "Type the capital letter A"

    def test_view_never_exposes_answer(self, controller):
        view = controller.start_run("Ana")
        assert not hasattr(view, "answers")

    def test_cannot_start_twice_mid_run(self, controller):
        controller.start_run("Ana")
        with pytest.raises(RunStateError):
            controller.start_run("Bob")

    def test_state_copy_is_detached(self, controller):
        controller.start_run("Ana")
        snap = controller.state
        snap.score = 999
        assert controller.state.score == 0


# ── answers ─────────────────────────────────────────────────


class TestSubmitAnswer:
    def test_submit_before_start(self, controller):
        with pytest.raises(NoActiveQuestionError):
            controller.submit_answer("A")

    def test_correct_adds_points_and_keeps_attempts(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("a")
        res = controller.submit_answer("A")
        s = controller.state
        assert res.outcome is Outcome.correct
        assert s.score == 10
        assert s.attempts_remaining == 2
        assert s.status is RunStatus.advancing

    def test_case_mismatch_consumes_attempt(self, controller):
        controller.start_run("Ana")
        res = controller.submit_answer("a")
        assert res.outcome is Outcome.incorrect
        assert res.message == MSG_CASE
        assert controller.state.attempts_remaining == 2

    def test_three_wrong_answers_end_the_run(self, controller, sink):
        controller.start_run("Ana")
        for expected in (2, 1):
            controller.submit_answer("Z")
            assert controller.state.attempts_remaining == expected
            assert controller.status is RunStatus.in_sublevel
        controller.submit_answer("Z")
        s = controller.state
        assert s.attempts_remaining == 0
        assert s.status is RunStatus.game_over
        assert [e.outcome for e in sink.entries] == ["game_over"]

    def test_question_is_kept_after_wrong_answer(self, make_controller):
        ctrl = make_controller([
            topic("Words", "word-formation", "Unscramble {letters}", ["HOUSE", "TREE", "FISH"]),
        ])
        first = ctrl.start_run("Ana")
        ctrl.submit_answer("nope")
        assert ctrl.current_view() == first
        assert ctrl.state.question is not None

    def test_no_submissions_after_game_over(self, controller):
        controller.start_run("Ana")
        for _ in range(3):
            controller.submit_answer("Z")
        with pytest.raises(RunStateError):
            controller.submit_answer("A")
        with pytest.raises(RunStateError):
            controller.start_sublevel(1)

    def test_submit_while_advancing_has_no_question(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("A")
        with pytest.raises(NoActiveQuestionError):
            controller.submit_answer("A")

    def test_attempts_never_negative_with_one_attempt(self, make_controller):
        ctrl = make_controller(
            [topic("L", "alphabet-recognition", "{letter}", ["A"], answerType="case-sensitive")],
            max_attempts=1,
        )
        ctrl.start_run("Ana")
        ctrl.submit_answer("B")
        assert ctrl.state.attempts_remaining == 0
        assert ctrl.status is RunStatus.game_over


class TestOpenQuestions:
    def _to_open(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("A")
        controller.advance()
        controller.submit_answer("went")
        controller.advance()

    def test_empty_answer_does_not_consume(self, controller):
        self._to_open(controller)
        res = controller.submit_answer("  ")
        assert res.message == MSG_EMPTY
        assert controller.state.attempts_remaining == 3
        assert controller.status is RunStatus.in_sublevel

    def test_empty_answer_consumes_when_configured(self, basic_registry, fake_dictionary, sink):
        ctrl = ProgressionController(basic_registry, fake_dictionary, sink, open_empty_consumes_attempt=True)
        self._to_open(ctrl)
        ctrl.submit_answer("")
        assert ctrl.state.attempts_remaining == 2

    def test_any_text_completes(self, controller):
        self._to_open(controller)
        assert controller.submit_answer("x").is_correct


class TestDictionaryQuestions:
    CONTENT = [topic("Make", "word-formation", "Letters: {letters}", ["listen"], apiValidation=True)]

    def test_known_word_is_correct(self, make_controller, fake_dictionary):
        ctrl = make_controller(self.CONTENT, total_sublevels=2)
        ctrl.start_run("Ana")
        res = ctrl.submit_answer("SILENT")
        assert res.is_correct
        assert fake_dictionary.calls == ["SILENT"]
        assert ctrl.state.score == 10

    def test_unknown_word_consumes_attempt(self, make_controller, fake_dictionary):
        ctrl = make_controller(self.CONTENT, total_sublevels=2)
        ctrl.start_run("Ana")
        res = ctrl.submit_answer("tinsel")
        assert res.message == MSG_NOT_A_WORD
        assert ctrl.state.attempts_remaining == 2

    def test_local_mismatch_skips_dictionary(self, make_controller, fake_dictionary):
        ctrl = make_controller(self.CONTENT, total_sublevels=2)
        ctrl.start_run("Ana")
        ctrl.submit_answer("list")
        assert fake_dictionary.calls == []
        assert ctrl.state.attempts_remaining == 2

    @pytest.mark.parametrize("broken", [FakeDictionary(fail=True), FakeDictionary(crash=True)])
    def test_dictionary_failure_fails_closed(self, make_controller, broken):
        ctrl = make_controller(self.CONTENT, total_sublevels=2, dictionary=broken)
        ctrl.start_run("Ana")
        res = ctrl.submit_answer("silent")
        assert res.outcome is Outcome.incorrect
        assert res.message == MSG_DICT_DOWN
        assert ctrl.state.attempts_remaining == 2
        assert ctrl.status is RunStatus.in_sublevel


# ── progression ─────────────────────────────────────────────


class TestAdvanceAndComplete:
    def test_advance_moves_to_next_sublevel(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("A")
        view = controller.advance()
        s = controller.state
        assert view.sublevel == 2
        assert view.topic == "Past Tense"
        assert s.current_sublevel == 2
        assert s.attempts_remaining == 3

    def test_attempts_reset_each_sublevel(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("b")
        controller.submit_answer("A")
        controller.advance()
        assert controller.state.attempts_remaining == 3

    def test_advance_only_after_correct(self, controller):
        controller.start_run("Ana")
        with pytest.raises(RunStateError):
            controller.advance()

    def test_last_correct_answer_completes(self, controller, sink):
        controller.start_run("Ana")
        controller.submit_answer("A")
        controller.advance()
        controller.submit_answer("went")
        controller.advance()
        controller.submit_answer("It rains.")
        s = controller.state
        assert s.status is RunStatus.completed
        assert s.current_sublevel == 3
        assert s.score == 30
        assert controller.progress_pct == 100
        assert len(sink.entries) == 1
        assert sink.entries[0].name == "Ana"
        assert sink.entries[0].score == 30
        assert sink.entries[0].outcome == "completed"
        with pytest.raises(RunStateError):
            controller.advance()

    def test_single_sublevel_run(self, make_controller):
        ctrl = make_controller([topic("L", "alphabet-recognition", "{letter}", ["A"])], total_sublevels=1)
        ctrl.start_run("Ana")
        ctrl.submit_answer("a")
        assert ctrl.status is RunStatus.completed


class TestStartSublevel:
    def test_jump_forward(self, controller):
        controller.start_run("Ana")
        view = controller.start_sublevel(3)
        assert view.sublevel == 3
        assert controller.state.current_sublevel == 3

    def test_beyond_total_is_out_of_range(self, controller):
        controller.start_run("Ana")
        with pytest.raises(OutOfRangeError):
            controller.start_sublevel(4)
        with pytest.raises(OutOfRangeError):
            controller.start_sublevel(0)

    def test_cannot_go_back(self, controller):
        controller.start_run("Ana")
        controller.start_sublevel(2)
        with pytest.raises(RunStateError):
            controller.start_sublevel(1)

    def test_requires_started_run(self, controller):
        with pytest.raises(RunStateError):
            controller.start_sublevel(1)

    def test_restarting_same_sublevel_resets_attempts(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("b")
        controller.start_sublevel(1)
        assert controller.state.attempts_remaining == 3

    def test_solved_sublevel_cannot_be_replayed(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("A")
        assert controller.status is RunStatus.advancing
        for _ in range(3):
            with pytest.raises(RunStateError):
                controller.start_sublevel(1)
        s = controller.state
        assert s.score == 10
        assert s.status is RunStatus.advancing
        assert s.current_sublevel == 1

    def test_jump_forward_while_advancing(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("A")
        view = controller.start_sublevel(3)
        assert view.sublevel == 3
        assert controller.state.score == 10
        assert controller.status is RunStatus.in_sublevel


class TestRestart:
    def test_restart_after_game_over(self, controller):
        controller.start_run("Ana")
        controller.submit_answer("A")
        controller.advance()
        for _ in range(3):
            controller.submit_answer("goed")
        assert controller.status is RunStatus.game_over
        view = controller.restart()
        s = controller.state
        assert s.score == 0
        assert s.current_sublevel == 1
        assert s.status is RunStatus.in_sublevel
        assert s.player_name == "Ana"
        assert s.attempts_remaining == 3
        assert view.sublevel == 1

    def test_restart_mid_run_is_rejected(self, controller):
        controller.start_run("Ana")
        with pytest.raises(RunStateError):
            controller.restart()

    def test_new_run_after_terminal_may_change_name(self, controller):
        controller.start_run("Ana")
        for _ in range(3):
            controller.submit_answer("z")
        controller.start_run("Bob")
        assert controller.state.player_name == "Bob"


# ── high scores ─────────────────────────────────────────────


class TestHighScoreEmission:
    def test_new_high_score_flag(self, controller, sink):
        sink.append(HighScoreEntry("Old", 5, datetime(2024, 1, 1, tzinfo=timezone.utc)))
        controller.start_run("Ana")
        controller.submit_answer("A")
        controller.advance()
        for _ in range(3):
            controller.submit_answer("nope")
        assert controller.state.is_new_high_score is True

    def test_not_a_high_score(self, controller, sink):
        sink.append(HighScoreEntry("Old", 50, datetime(2024, 1, 1, tzinfo=timezone.utc)))
        controller.start_run("Ana")
        for _ in range(3):
            controller.submit_answer("nope")
        assert controller.state.is_new_high_score is False
        assert len(sink.entries) == 2

    def test_sink_failure_does_not_break_run(self, basic_registry, fake_dictionary):
        class BrokenSink(MemorySink):
            def append(self, entry):
                raise RuntimeError("db down")

        ctrl = ProgressionController(basic_registry, fake_dictionary, BrokenSink())
        ctrl.start_run("Ana")
        for _ in range(3):
            ctrl.submit_answer("nope")
        assert ctrl.status is RunStatus.game_over
        assert ctrl.state.score_recorded is False

    def test_uses_injected_clock(self, basic_registry, fake_dictionary, sink):
        when = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        ctrl = ProgressionController(basic_registry, fake_dictionary, sink, clock=lambda: when)
        ctrl.start_run("Ana")
        for _ in range(3):
            ctrl.submit_answer("nope")
        assert sink.entries[0].timestamp == when


class TestSerialisation:
    def test_concurrent_submissions_are_serialised(self, sink):
        gate = threading.Event()
        entered = []

        class SlowDictionary:
            def word_exists(self, word):
                entered.append(word)
                gate.wait(timeout=2)
                return False

        registry = build_registry(
            parse_game_data([topic("Make", "word-formation", "{letters}", ["listen"], apiValidation=True)]),
            total_sublevels=1,
        )
        ctrl = ProgressionController(registry, SlowDictionary(), sink)
        ctrl.start_run("Ana")

        threads = [threading.Thread(target=ctrl.submit_answer, args=("silent",)) for _ in range(2)]
        for t in threads:
            t.start()
        # sólo una validación puede estar en vuelo
        threads[0].join(timeout=0.2)
        assert len(entered) == 1
        gate.set()
        for t in threads:
            t.join(timeout=2)
        assert len(entered) == 2
        assert ctrl.state.attempts_remaining == 1
