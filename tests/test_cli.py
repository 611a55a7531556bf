import io
import tempfile
import unittest
from contextlib import redirect_stdout
from datetime import datetime, timezone
from pathlib import Path
from unittest import mock

import yaml

from civicsquiz.app.cli import main
from civicsquiz.models import GameResult, HistoryEntry, PairedQuestionId
from civicsquiz.storage import load_history, load_results, save_history, save_result

T0 = datetime(2024, 6, 1, tzinfo=timezone.utc)


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        self.store = root / "store"
        self.config = root / "config.yml"
        self.config.write_text(
            yaml.safe_dump({"game": {"max_questions": 3, "win_threshold": 3}, "data": {"store_path": str(self.store)}}),
            encoding="utf-8",
        )

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> str:
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(list(argv))
        self.assertEqual(code, 0)
        return buf.getvalue()

    def test_list_questions(self) -> None:
        out = self.run_cli("list-questions", "--config", str(self.config), "--state", "NY")
        self.assertIn("20-0: Who is one of your state's U.S. Senators now? [Chuck Schumer]", out)
        self.assertIn("38-unified", out)

    def test_stats_reads_store(self) -> None:
        save_history({PairedQuestionId.paired(1, 0): (HistoryEntry(T0, True),)}, self.store)
        save_result(GameResult("s1", 3, 3, 0, 100, True, False, False, T0), self.store)
        out = self.run_cli("stats", "--config", str(self.config), "--filter", "never_asked", "--sort", "question_number")
        self.assertNotIn(" 1-0 ", out)
        self.assertIn("Total answers: 1", out)
        self.assertIn("Games played: 1", out)

    def test_play_saves_history_and_result(self) -> None:
        with mock.patch("builtins.input", return_value="quit"):
            out = self.run_cli("play", "--config", str(self.config), "--no-save")
        self.assertIn("Session abandoned", out)
        self.assertEqual(load_results(self.store), [])

        with mock.patch("builtins.input", return_value="A"):
            out = self.run_cli("play", "--config", str(self.config), "--questions", "3")
        self.assertIn("Session Summary", out)
        self.assertEqual(len(load_results(self.store)), 1)
        self.assertEqual(sum(len(v) for v in load_history(self.store).values()), 3)


if __name__ == "__main__":
    unittest.main()
