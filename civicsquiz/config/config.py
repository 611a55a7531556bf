from __future__ import annotations

"""Configuration loading and validation for civicsquiz.

This module loads YAML configuration, applies defaults, and validates
game limits, selection weights and the learner's location.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import sys

import yaml

from ..models import GameSettings
from ..policy.selector import SelectionWeights
from ..questions.schema import STATE_ABBREVIATIONS

ALLOWED_STRATEGIES = {"weighted", "uniform"}


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def _positive_int(section: Dict[str, Any], key: str, default: int) -> int:
    try:
        value = int(section.get(key, default))
    except (TypeError, ValueError):
        value = 0
    if value < 1:
        print(f"WARNING: {key} must be a positive integer, got '{section.get(key)}'; using {default}.")
        value = default
    section[key] = value
    return value


def _non_negative_float(section: Dict[str, Any], key: str, default: float) -> float:
    try:
        value = float(section.get(key, default))
    except (TypeError, ValueError):
        value = -1.0
    if value < 0:
        print(f"WARNING: {key} must be a non-negative number, got '{section.get(key)}'; using {default}.")
        value = float(default)
    section[key] = value
    return value


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Unsupported values are replaced with defaults and reported with a
    ``WARNING:`` line rather than aborting the run.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    cfg.setdefault("game", {})
    cfg.setdefault("selection", {})
    cfg.setdefault("data", {})
    cfg.setdefault("ui", {})

    game = cfg["game"]
    selection = cfg["selection"]
    data = cfg["data"]
    ui = cfg["ui"]

    game.setdefault("max_questions", 20)
    game.setdefault("win_threshold", 12)
    game.setdefault("user_state", "CA")
    game.setdefault("user_district", None)
    game.setdefault("question_numbers", [])

    selection.setdefault("strategy", "weighted")
    selection.setdefault("unanswered_weight", 10)
    selection.setdefault("incorrect_weight", 5)
    selection.setdefault("correct_weight", 1)
    selection.setdefault("recent_window", 5)

    data.setdefault("questions_path", None)
    data.setdefault("store_path", "./civicsquiz_data")

    ui.setdefault("show_weights", False)
    ui.setdefault("show_expected_answer", False)

    max_q = _positive_int(game, "max_questions", 20)
    threshold = _positive_int(game, "win_threshold", 12)
    if threshold > max_q:
        print(f"WARNING: win_threshold ({threshold}) exceeds max_questions ({max_q}); using {max_q}.")
        game["win_threshold"] = max_q

    state = str(game.get("user_state") or "").strip().upper()
    if state not in STATE_ABBREVIATIONS:
        print(f"WARNING: Unknown state '{game.get('user_state')}', using 'CA'.")
        state = "CA"
    game["user_state"] = state

    district = game.get("user_district")
    game["user_district"] = None if district in (None, "") else str(district)

    numbers = game.get("question_numbers") or []
    try:
        game["question_numbers"] = [int(n) for n in numbers]
    except (TypeError, ValueError):
        print(f"WARNING: question_numbers must be a list of integers, got '{numbers}'; using all questions.")
        game["question_numbers"] = []

    strategy = selection.get("strategy")
    if strategy not in ALLOWED_STRATEGIES:
        print(f"WARNING: Unsupported selection strategy '{strategy}', using 'weighted'.")
        selection["strategy"] = "weighted"

    _non_negative_float(selection, "unanswered_weight", 10)
    _non_negative_float(selection, "incorrect_weight", 5)
    _non_negative_float(selection, "correct_weight", 1)
    _positive_int(selection, "recent_window", 5)

    ui["show_weights"] = bool(ui.get("show_weights"))
    ui["show_expected_answer"] = bool(ui.get("show_expected_answer"))

    return cfg


def settings_from_config(cfg: Dict[str, Any]) -> GameSettings:
    game = cfg.get("game", {})
    numbers = game.get("question_numbers") or None
    return GameSettings(
        max_questions=int(game.get("max_questions", 20)),
        win_threshold=int(game.get("win_threshold", 12)),
        user_state=str(game.get("user_state", "CA")),
        user_district=game.get("user_district"),
        question_numbers=tuple(int(n) for n in numbers) if numbers else None,
    )


def weights_from_config(cfg: Dict[str, Any]) -> SelectionWeights:
    sel = cfg.get("selection", {})
    return SelectionWeights(
        unanswered=float(sel.get("unanswered_weight", 10)),
        incorrect=float(sel.get("incorrect_weight", 5)),
        correct=float(sel.get("correct_weight", 1)),
        window=int(sel.get("recent_window", 5)),
    )
