from __future__ import annotations

"""Parquet-backed store for answer history and game results using pandas + pyarrow.

Units of data: one row per graded answer (history) and one row per finished
session (results). Settings live next to them as a small YAML file.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import pyarrow  # noqa: F401
import yaml

from ..app.explain import trace as xtrace
from ..models import AnswerHistory, GameResult, GameSettings, HistoryEntry, HistoryMap, PairedQuestionId
from .schema import HISTORY_DTYPES, RESULT_DTYPES, GameResultRow, HistoryRow, SettingsRecord

HISTORY_FILE = "answer_history.parquet"
RESULTS_FILE = "game_results.parquet"
SETTINGS_FILE = "settings.yml"

# Only the most recent results are kept.
MAX_RESULTS = 50


def _empty_df(dtypes: Dict[str, object]) -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in dtypes.items()})


def _fix_dtypes(df: pd.DataFrame, dtypes: Dict[str, object]) -> pd.DataFrame:
    for col, dt in dtypes.items():
        if col not in df.columns:
            df[col] = pd.Series(pd.NA, index=df.index)
        df[col] = df[col].astype(dt)
    return df[list(dtypes.keys())]


def _write(df: pd.DataFrame, path: Path) -> None:
    df.to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def init_store(data_dir: Path) -> None:
    """Ensure data directory and empty Parquet files with correct schema exist."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    if not (data_dir / HISTORY_FILE).exists():
        _write(_empty_df(HISTORY_DTYPES), data_dir / HISTORY_FILE)
    if not (data_dir / RESULTS_FILE).exists():
        _write(_empty_df(RESULT_DTYPES), data_dir / RESULTS_FILE)


# ---- Answer history ----


def history_rows_from(history: HistoryMap) -> List[HistoryRow]:
    """Flatten a history map into validated rows."""
    rows: List[HistoryRow] = []
    for qid, entries in history.items():
        for e in entries:
            rows.append(HistoryRow(paired_id=str(qid), ts=e.ts, correct=e.correct))
    return rows


def validate_history(rows: List[HistoryRow]) -> pd.DataFrame:
    """Validate rows (or plain dicts) and return a DataFrame with proper dtypes."""
    if not isinstance(rows, list):
        raise TypeError("rows must be a list[HistoryRow]")
    models = [r if isinstance(r, HistoryRow) else HistoryRow.model_validate(r) for r in rows]
    df = pd.DataFrame([m.model_dump() for m in models], columns=list(HISTORY_DTYPES.keys()))
    return _fix_dtypes(df, HISTORY_DTYPES)


def append_history(df_new: pd.DataFrame, data_dir: Path) -> int:
    """Append answer rows; exact duplicates are dropped. Returns the new row count."""
    data_dir = Path(data_dir)
    f = data_dir / HISTORY_FILE
    if f.exists():
        df_old = pd.read_parquet(f, engine="pyarrow")
    else:
        data_dir.mkdir(parents=True, exist_ok=True)
        df_old = _empty_df(HISTORY_DTYPES)
    frames = [d for d in (_fix_dtypes(df_old, HISTORY_DTYPES), _fix_dtypes(df_new.copy(), HISTORY_DTYPES)) if not d.empty]
    combined = pd.concat(frames, ignore_index=True) if frames else _empty_df(HISTORY_DTYPES)
    combined = _fix_dtypes(combined, HISTORY_DTYPES).drop_duplicates()
    combined = combined.sort_values("ts", kind="stable").reset_index(drop=True)
    _write(combined, f)
    xtrace("store_written", {"file": HISTORY_FILE, "rows": len(combined)})
    return len(combined)


def save_history(history: HistoryMap, data_dir: Path) -> int:
    return append_history(validate_history(history_rows_from(history)), data_dir)


def load_history_df(data_dir: Path) -> pd.DataFrame:
    f = Path(data_dir) / HISTORY_FILE
    if not f.exists():
        return _empty_df(HISTORY_DTYPES)
    return _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), HISTORY_DTYPES)


def load_history(data_dir: Path) -> Dict[PairedQuestionId, AnswerHistory]:
    """Rebuild the history map, oldest entry first. Unparseable ids are skipped."""
    df = load_history_df(data_dir).sort_values("ts", kind="stable")
    out: Dict[PairedQuestionId, List[HistoryEntry]] = {}
    for pid, ts, correct in zip(df["paired_id"], df["ts"], df["correct"]):
        if pd.isna(pid) or pd.isna(ts):
            continue
        try:
            qid = PairedQuestionId.parse(str(pid))
        except ValueError:
            continue
        out.setdefault(qid, []).append(HistoryEntry(ts=ts.to_pydatetime(), correct=bool(correct)))
    return {qid: tuple(entries) for qid, entries in out.items()}


# ---- Game results ----


def save_result(result: GameResult, data_dir: Path, keep: int = MAX_RESULTS) -> int:
    """Store one finished game, replacing any row with the same session id.

    Only the ``keep`` most recent results survive. Returns the row count.
    """
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    f = data_dir / RESULTS_FILE
    row = GameResultRow.from_result(result)
    df_new = _fix_dtypes(pd.DataFrame([row.model_dump()]), RESULT_DTYPES)
    if f.exists():
        df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), RESULT_DTYPES)
        df = df[df["session_id"] != row.session_id]
        df = pd.concat([df, df_new], ignore_index=True) if not df.empty else df_new
    else:
        df = df_new
    df = df.sort_values("completed_at", kind="stable").tail(max(0, int(keep))).reset_index(drop=True)
    _write(_fix_dtypes(df, RESULT_DTYPES), f)
    xtrace("store_written", {"file": RESULTS_FILE, "rows": len(df)})
    return len(df)


def load_results_df(data_dir: Path) -> pd.DataFrame:
    f = Path(data_dir) / RESULTS_FILE
    if not f.exists():
        return _empty_df(RESULT_DTYPES)
    return _fix_dtypes(pd.read_parquet(f, engine="pyarrow"), RESULT_DTYPES)


def load_results(data_dir: Path) -> List[GameResult]:
    """Stored results, newest first."""
    df = load_results_df(data_dir).sort_values("completed_at", ascending=False, kind="stable")
    out: List[GameResult] = []
    for rec in df.to_dict("records"):
        row = GameResultRow(
            session_id=str(rec["session_id"]),
            total_questions=int(rec["total_questions"]),
            correct_answers=int(rec["correct_answers"]),
            incorrect_answers=int(rec["incorrect_answers"]),
            percentage=int(rec["percentage"]),
            is_early_win=bool(rec["is_early_win"]),
            is_early_fail=bool(rec["is_early_fail"]),
            is_completed_normal=bool(rec["is_completed_normal"]),
            completed_at=pd.Timestamp(rec["completed_at"]).to_pydatetime(),
        )
        out.append(row.to_result())
    return out


# ---- Settings ----


def save_settings(settings: GameSettings, data_dir: Path) -> Path:
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    record = SettingsRecord.from_settings(settings)
    path = data_dir / SETTINGS_FILE
    with path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(record.model_dump(), fh, sort_keys=False)
    xtrace("store_written", {"file": SETTINGS_FILE})
    return path


def load_settings(data_dir: Path) -> Optional[GameSettings]:
    """Saved settings, or None when nothing has been saved yet."""
    path = Path(data_dir) / SETTINGS_FILE
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    return SettingsRecord.model_validate(data).to_settings()


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Export a DataFrame to line-delimited JSON (NDJSON) for quick inspection."""
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")
