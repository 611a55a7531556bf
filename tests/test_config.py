import io
import unittest
from contextlib import redirect_stderr, redirect_stdout

from civicsquiz.config.config import load_config, settings_from_config, validate_config, weights_from_config
from civicsquiz.models import GameSettings
from civicsquiz.policy.selector import DEFAULT_WEIGHTS


def quiet_validate(cfg):
    buf = io.StringIO()
    with redirect_stdout(buf):
        out = validate_config(cfg)
    return out, buf.getvalue()


class ConfigTests(unittest.TestCase):
    def test_defaults_file(self) -> None:
        cfg, warnings = quiet_validate(load_config())
        self.assertEqual(warnings, "")
        self.assertEqual(settings_from_config(cfg), GameSettings())
        self.assertEqual(weights_from_config(cfg), DEFAULT_WEIGHTS)
        self.assertEqual(cfg["selection"]["strategy"], "weighted")
        self.assertIsNone(cfg["data"]["questions_path"])

    def test_empty_config_gets_defaults(self) -> None:
        cfg, _ = quiet_validate({})
        self.assertEqual(cfg["game"]["max_questions"], 20)
        self.assertEqual(cfg["game"]["win_threshold"], 12)
        self.assertEqual(cfg["ui"]["show_weights"], False)

    def test_unknown_state_falls_back(self) -> None:
        cfg, warnings = quiet_validate({"game": {"user_state": "ZZ"}})
        self.assertEqual(cfg["game"]["user_state"], "CA")
        self.assertIn("WARNING", warnings)
        cfg, _ = quiet_validate({"game": {"user_state": "tx", "user_district": 2}})
        self.assertEqual(settings_from_config(cfg).user_state, "TX")
        self.assertEqual(settings_from_config(cfg).user_district, "2")

    def test_threshold_clamped_to_max(self) -> None:
        cfg, warnings = quiet_validate({"game": {"max_questions": 5, "win_threshold": 9}})
        self.assertEqual(cfg["game"]["win_threshold"], 5)
        self.assertIn("win_threshold", warnings)

    def test_bad_numbers_replaced(self) -> None:
        cfg, _ = quiet_validate(
            {
                "game": {"max_questions": "many", "question_numbers": [1, "x"]},
                "selection": {"strategy": "random", "incorrect_weight": -3, "recent_window": 0},
            }
        )
        self.assertEqual(cfg["game"]["max_questions"], 20)
        self.assertEqual(cfg["game"]["question_numbers"], [])
        self.assertEqual(cfg["selection"]["strategy"], "weighted")
        self.assertEqual(weights_from_config(cfg).incorrect, 5.0)
        self.assertEqual(weights_from_config(cfg).window, 5)

    def test_question_numbers_become_settings(self) -> None:
        cfg, _ = quiet_validate({"game": {"question_numbers": ["20", 38]}, "selection": {"strategy": "uniform"}})
        self.assertEqual(settings_from_config(cfg).question_numbers, (20, 38))
        self.assertEqual(cfg["selection"]["strategy"], "uniform")

    def test_missing_file_exits(self) -> None:
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit):
                load_config("/nonexistent/civicsquiz.yml")


if __name__ == "__main__":
    unittest.main()
