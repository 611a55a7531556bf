import random
import unittest
from datetime import datetime, timezone

from civicsquiz.app.session_machine import create_session, submit_answer
from civicsquiz.models import (
    EarlyWin,
    GameResult,
    PairedQuestion,
    PairedQuestionId,
    GameSettings,
    SubmittedAnswer,
    session_from_json,
)
from civicsquiz.util.randomness import fixed_clock

T0 = datetime(2024, 3, 9, 8, 30, tzinfo=timezone.utc)


class PairedQuestionIdTests(unittest.TestCase):
    def test_text_form(self) -> None:
        self.assertEqual(str(PairedQuestionId.paired(20, 0)), "20-0")
        self.assertEqual(str(PairedQuestionId.unified(38)), "38-unified")

    def test_parse(self) -> None:
        self.assertEqual(PairedQuestionId.parse("20-1"), PairedQuestionId(20, 1))
        self.assertEqual(PairedQuestionId.parse(" 38-unified "), PairedQuestionId(38, None))
        self.assertTrue(PairedQuestionId.parse("38-unified").is_unified)

    def test_parse_rejects_garbage(self) -> None:
        for bad in ("", "20", "-1", "x-1", "20-", "20-abc", "20--1"):
            with self.assertRaises(ValueError):
                PairedQuestionId.parse(bad)

    def test_ids_are_hashable_keys(self) -> None:
        hist = {PairedQuestionId.paired(1, 0): "a"}
        self.assertIn(PairedQuestionId.parse("1-0"), hist)
        self.assertNotIn(PairedQuestionId.unified(1), hist)


class JsonFormTests(unittest.TestCase):
    def test_session_round_trip(self) -> None:
        q = PairedQuestion(
            id=PairedQuestionId.unified(38),
            question_number=38,
            question="Name two?",
            answers=("a", "b", "c", "d", "e", "f"),
            correct=frozenset({1, 4}),
            correct_answer_text="b, e",
            expected_answers=2,
        )
        st = create_session([q], GameSettings(max_questions=1, win_threshold=1), rng=random.Random(2), clock=fixed_clock(T0))
        done = submit_answer(st.session, SubmittedAnswer(q.id, (4, 1)), q, clock=fixed_clock(T0))
        self.assertIsInstance(done, EarlyWin)

        back = session_from_json(done.to_json())
        self.assertIsInstance(back, EarlyWin)
        self.assertEqual(back, done)
        self.assertEqual(back.history, done.history)
        self.assertEqual(PairedQuestion.from_json(q.to_json()), q)

    def test_unknown_tag(self) -> None:
        with self.assertRaises(ValueError):
            session_from_json({"_tag": "Paused", "id": "x", "started_at": T0.isoformat()})

    def test_result_from_json(self) -> None:
        r = GameResult.from_json(
            {
                "session_id": "abc",
                "total_questions": 4,
                "correct_answers": 3,
                "incorrect_answers": 1,
                "percentage": 75,
                "is_early_win": True,
                "completed_at": "2024-03-09T08:30:00+00:00",
            }
        )
        self.assertEqual(r.completed_at, T0)
        self.assertFalse(r.is_early_fail)
        self.assertEqual(r.to_json()["percentage"], 75)


if __name__ == "__main__":
    unittest.main()
