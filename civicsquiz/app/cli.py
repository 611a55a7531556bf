from __future__ import annotations

"""CLI for civicsquiz using SessionManager and the parquet store."""

import argparse
import sys
from pathlib import Path
from typing import Any

from .. import __version__
from ..errors import QuizError
from ..config.config import load_config, settings_from_config, validate_config, weights_from_config
from ..questions.bank import load_bank
from ..stats.stats import (
    FILTERS,
    SORT_FIELDS,
    combined_summary,
    filter_stats,
    format_summary,
    question_stats,
    results_trend,
    sort_stats,
)
from ..storage.store import load_history, load_results, save_history, save_result
from ..util.randomness import make_rng, utc_now
from .session_manager import SessionManager


def _build_ui() -> dict[str, Any]:
    def ask(prompt: str) -> str:
        return input(prompt)

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


def _apply_location(cfg: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    game = cfg.setdefault("game", {})
    if getattr(args, "state", None):
        game["user_state"] = args.state
    if getattr(args, "district", None):
        game["user_district"] = args.district
    return cfg


def _load(args: argparse.Namespace) -> tuple[dict[str, Any], Any]:
    cfg = load_config(args.config)
    cfg = validate_config(_apply_location(cfg, args))
    bank = load_bank(cfg["data"].get("questions_path"))
    return cfg, bank


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="civicsquiz")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="cmd", required=True)

    pp = sub.add_parser("play")
    pp.add_argument("--config", default=None)
    pp.add_argument("--state", default=None)
    pp.add_argument("--district", default=None)
    pp.add_argument("--questions", type=int, default=None)
    pp.add_argument("--threshold", type=int, default=None)
    pp.add_argument("--explain", action="store_true")
    pp.add_argument("--no-save", dest="save", action="store_false", help="Do not persist history or the result")

    sp = sub.add_parser("stats")
    sp.add_argument("--config", default=None)
    sp.add_argument("--state", default=None)
    sp.add_argument("--district", default=None)
    sp.add_argument("--filter", dest="which", choices=FILTERS, default="all")
    sp.add_argument("--sort", choices=sorted(SORT_FIELDS), default="question_number")
    sp.add_argument("--desc", action="store_true")

    lp = sub.add_parser("list-questions")
    lp.add_argument("--config", default=None)
    lp.add_argument("--state", default=None)
    lp.add_argument("--district", default=None)

    args = p.parse_args(argv)

    if args.cmd == "list-questions":
        cfg, bank = _load(args)
        for q in bank.paired_questions(settings_from_config(cfg), rng=make_rng()):
            print(f"{q.id}: {q.question} [{q.correct_answer_text}]")
        return 0

    if args.cmd == "stats":
        cfg, bank = _load(args)
        store = Path(cfg["data"]["store_path"])
        history = load_history(store)
        questions = bank.paired_questions(settings_from_config(cfg), rng=make_rng())
        df = question_stats(questions, history, weights_from_config(cfg))
        df = sort_stats(filter_stats(df, args.which), args.sort, ascending=not args.desc)
        cols = ["paired_id", "times_asked", "accuracy", "selection_probability", "mastered", "question"]
        if df.empty:
            print("No questions match.")
        else:
            print(df[cols].to_string(index=False))
        print()
        print(format_summary(combined_summary(questions, history)))
        results = load_results(store)
        if results:
            trend = results_trend(results)
            last = trend.iloc[-1]
            print(
                f"Games played: {len(trend)} | last score: {int(last['percentage'])}% "
                f"| trend: {float(last['percentage_smooth']):.1f}%"
            )
        return 0

    if args.cmd == "play":
        if args.explain:
            from .explain import enable as explain_enable

            explain_enable(True)
        cfg, bank = _load(args)
        game = cfg["game"]
        if args.questions is not None:
            game["max_questions"] = args.questions
        if args.threshold is not None:
            game["win_threshold"] = args.threshold
        store = Path(cfg["data"]["store_path"])
        prior = load_history(store)

        sm = SessionManager(cfg, bank, rng=make_rng(), clock=utc_now)
        try:
            sm.start_session(prior)
        except QuizError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 2
        result = sm.run(_build_ui())
        if result is None:
            print("\nSession abandoned; nothing saved.")
            return 0

        print("\nSession Summary:")
        print(
            f"{result.correct_answers}/{result.total_questions} correct ({result.percentage}%)"
        )
        if args.save:
            save_history(sm.history, store)
            save_result(result, store)
        return 0

    return 1
