from __future__ import annotations

"""Session Manager: resolves the question pool, drives one game, and reports.

CLI-agnostic: all input and output goes through ``ask``/``inform`` callbacks.
"""

import random
import re
import string
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config.config import settings_from_config, weights_from_config
from ..models import (
    GameResult,
    GameSession,
    HistoryMap,
    PairedQuestion,
    QuestionDisplay,
    SubmittedAnswer,
)
from ..policy.selector import question_weight
from ..questions.bank import QuestionBank
from ..results.aggregator import display_of, result_of
from ..stats.stats import combined_summary, format_summary
from ..util.randomness import Clock, utc_now
from .explain import trace as xtrace
from .session_machine import (
    SessionStart,
    create_session,
    current_question_id,
    is_in_progress,
    session_length,
    submit_answer,
)

LETTERS = string.ascii_uppercase
QUIT_COMMANDS = {"q", "quit", "exit"}
STATS_COMMANDS = {"stats", "?"}


def parse_letters(text: str, option_count: int) -> Optional[Tuple[int, ...]]:
    """Parse "A" or "A,C" into option indices. None when anything is off."""
    tokens = [t for t in re.split(r"[\s,;]+", text.strip().upper()) if t]
    if not tokens:
        return None
    indices: List[int] = []
    for tok in tokens:
        if len(tok) != 1 or tok not in LETTERS:
            return None
        idx = LETTERS.index(tok)
        if idx >= option_count or idx in indices:
            return None
        indices.append(idx)
    return tuple(indices)


class SessionManager:
    def __init__(
        self,
        cfg: Dict[str, Any],
        bank: QuestionBank,
        *,
        rng: random.Random,
        clock: Clock = utc_now,
    ) -> None:
        self.cfg = cfg
        self.bank = bank
        self.rng = rng
        self.clock = clock
        self.settings = settings_from_config(cfg)
        self.weights = weights_from_config(cfg)
        self.session: Optional[GameSession] = None
        self._start: Optional[SessionStart] = None
        self._pool: List[PairedQuestion] = []

    @property
    def adaptive(self) -> bool:
        return self.cfg.get("selection", {}).get("strategy", "weighted") == "weighted"

    def start_session(
        self,
        prior_history: Optional[HistoryMap] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> SessionStart:
        """Resolve the pool for the configured learner and open a new session.

        ``overrides`` replaces individual GameSettings fields for this run.
        """
        settings = replace(self.settings, **overrides) if overrides else self.settings
        self._pool = self.bank.paired_questions(settings, rng=self.rng)
        self._start = create_session(
            self._pool,
            settings,
            prior_history,
            rng=self.rng,
            clock=self.clock,
            weights=self.weights,
            adaptive=self.adaptive,
        )
        self.session = self._start.session
        return self._start

    @property
    def history(self) -> HistoryMap:
        assert self.session is not None
        return self.session.history

    def _current(self) -> Optional[PairedQuestion]:
        assert self.session is not None and self._start is not None
        qid = current_question_id(self.session)
        return self._start.question(qid) if qid is not None else None

    def current_question(self) -> Optional[QuestionDisplay]:
        """The question to show next, or None once the session has ended."""
        q = self._current()
        if q is None:
            return None
        assert self.session is not None
        return display_of(q, self.session.current_index + 1, session_length(self.session))

    def answer(self, letters: str) -> Optional[bool]:
        """Grade a letter answer for the current question.

        Returns whether it was correct, or None (and no transition) when the
        input does not parse or there is no question to answer.
        """
        q = self._current()
        if q is None:
            return None
        picked = parse_letters(letters, len(q.answers))
        if picked is None:
            return None
        selected = picked[0] if len(picked) == 1 and not q.is_multi_answer else picked
        assert self.session is not None
        before = self.session.correct_answers
        self.session = submit_answer(
            self.session,
            SubmittedAnswer(question_id=q.id, selected=selected),
            q,
            clock=self.clock,
        )
        return self.session.correct_answers > before

    def result(self) -> GameResult:
        assert self.session is not None
        return result_of(self.session)

    def stats_text(self) -> str:
        hist = self.session.history if self.session is not None else {}
        return format_summary(combined_summary(self._pool, hist))

    def run(self, ui: Dict[str, Callable[..., Any]]) -> Optional[GameResult]:
        """Play until the session ends. Returns None if the learner quits."""
        assert self.session is not None and self._start is not None
        ask = ui["ask"]
        inform = ui["inform"]
        ui_cfg = self.cfg.get("ui", {})

        if self._start.is_short:
            inform(
                f"Only {self._start.served} questions are available for {self._start.session.settings.user_state}; "
                f"this session is {self._start.short_by} short."
            )

        while is_in_progress(self.session):
            q = self._current()
            d = self.current_question()
            if q is None or d is None:
                break
            inform(f"\nQ{d.position}/{d.total}: {d.text}")
            if q.is_multi_answer and ui_cfg.get("show_expected_answer", False):
                inform(f"(choose {q.expected_answers})")
            if ui_cfg.get("show_weights", False):
                inform(f"[weight {question_weight(q.id, self.session.history, self.weights):.2f}]")
            for i, text in enumerate(d.answers):
                inform(f"  {LETTERS[i]}) {text}")

            while True:
                ans = ask("Answer (e.g. A or A,C), 'stats' or 'quit': ")
                cmd = ans.strip().lower()
                if cmd in QUIT_COMMANDS:
                    xtrace("session_quit", {"session": self.session.id, "answered": self.session.total_answered})
                    return None
                if cmd in STATS_COMMANDS:
                    inform(self.stats_text())
                    continue
                graded = self.answer(ans)
                if graded is None:
                    inform("Please answer with option letters, e.g. A or A,C.")
                    continue
                if graded:
                    inform("Correct!")
                else:
                    inform(f"Incorrect. Answer: {q.correct_answer_text}")
                break

        res = self.result()
        if res.is_early_win:
            inform(f"\nPassed early with {res.correct_answers} correct!")
        elif res.is_early_fail:
            inform(f"\nToo many misses ({res.incorrect_answers}). Session over.")
        return res
