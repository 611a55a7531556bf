from .schema import HISTORY_DTYPES, RESULT_DTYPES, GameResultRow, HistoryRow, SettingsRecord
from .store import (
    init_store,
    history_rows_from,
    validate_history,
    append_history,
    save_history,
    load_history_df,
    load_history,
    save_result,
    load_results_df,
    load_results,
    save_settings,
    load_settings,
    export_ndjson,
)

__all__ = [
    "HISTORY_DTYPES",
    "RESULT_DTYPES",
    "GameResultRow",
    "HistoryRow",
    "SettingsRecord",
    "init_store",
    "history_rows_from",
    "validate_history",
    "append_history",
    "save_history",
    "load_history_df",
    "load_history",
    "save_result",
    "load_results_df",
    "load_results",
    "save_settings",
    "load_settings",
    "export_ndjson",
]
