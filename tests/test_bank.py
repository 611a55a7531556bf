import json
import random
import tempfile
import unittest
from pathlib import Path

import yaml

from civicsquiz.models import GameSettings, PairedQuestionId
from civicsquiz.questions.bank import bank_from_records, load_bank

ONE = {
    "question": "What is the supreme law of the land?",
    "questionNumber": 1,
    "answers": {"_type": "text", "choices": ["the Constitution"]},
    "distractors": ["the Bill of Rights", "the Federalist Papers", "the Articles of Confederation"],
}


class SampleBankTests(unittest.TestCase):
    def test_sample_bank_loads(self) -> None:
        bank = load_bank()
        self.assertEqual(len(bank), 14)
        self.assertIn(38, bank.question_numbers())
        self.assertTrue(bank.distractors_for(20))
        self.assertEqual(bank.get(62).answer_type, "capital")
        self.assertIsNone(bank.get(999))

    def test_pool_for_california(self) -> None:
        bank = load_bank()
        pool = bank.paired_questions(GameSettings(user_state="CA"), rng=random.Random(1))
        ids = {q.id for q in pool}
        self.assertEqual(len(pool), 29)
        self.assertIn(PairedQuestionId.paired(20, 1), ids)
        self.assertIn(PairedQuestionId.unified(38), ids)
        self.assertNotIn(PairedQuestionId.paired(38, 0), ids)

    def test_state_without_local_data_drops_local_questions(self) -> None:
        bank = load_bank()
        pool = bank.paired_questions(GameSettings(user_state="WY"), rng=random.Random(1))
        numbers = {q.question_number for q in pool}
        self.assertFalse(numbers & {20, 23, 61, 62})

    def test_district_narrows_representatives(self) -> None:
        bank = load_bank()
        pool = bank.paired_questions(GameSettings(user_state="CA", user_district="11"), rng=random.Random(1))
        reps = [q for q in pool if q.question_number == 23]
        self.assertEqual([q.correct_answer_text for q in reps], ["Nancy Pelosi"])


class BankLayoutTests(unittest.TestCase):
    def test_duplicate_numbers_rejected(self) -> None:
        with self.assertRaises(ValueError):
            bank_from_records([ONE, ONE])

    def test_yaml_document_with_separate_pools(self) -> None:
        doc = {
            "questions": [{k: v for k, v in ONE.items() if k != "distractors"}],
            "distractors": [{"questionNumber": 1, "distractors": ["the Magna Carta"]}],
        }
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bank.yml"
            path.write_text(yaml.safe_dump(doc), encoding="utf-8")
            bank = load_bank(path)
        self.assertEqual(bank.distractors_for(1), ("the Magna Carta",))

    def test_unknown_layout_rejected(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bank.json"
            path.write_text(json.dumps("nope"), encoding="utf-8")
            with self.assertRaises(ValueError):
                load_bank(path)


if __name__ == "__main__":
    unittest.main()
