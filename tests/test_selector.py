import random
import unittest
from collections import Counter
from datetime import datetime, timedelta, timezone

from civicsquiz.models import HistoryEntry, PairedQuestionId
from civicsquiz.policy.history import merge, record_answer, recent
from civicsquiz.policy.selector import (
    DEFAULT_WEIGHTS,
    SelectionWeights,
    question_weight,
    select_question,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def entries(*flags):
    return tuple(HistoryEntry(ts=T0 + timedelta(minutes=i), correct=f) for i, f in enumerate(flags))


def ids(n):
    return [PairedQuestionId.paired(i + 1, 0) for i in range(n)]


class QuestionWeightTests(unittest.TestCase):
    def test_unseen_weighs_most(self) -> None:
        qid = PairedQuestionId.paired(1, 0)
        self.assertEqual(question_weight(qid, {}), 10.0)
        self.assertEqual(question_weight(qid, {qid: ()}), 10.0)
        self.assertEqual(question_weight(qid, None), 10.0)

    def test_accuracy_scales_between_incorrect_and_correct(self) -> None:
        qid = PairedQuestionId.unified(38)
        self.assertAlmostEqual(question_weight(qid, {qid: entries(True, True)}), 1.0)
        self.assertAlmostEqual(question_weight(qid, {qid: entries(False)}), 5.0)
        self.assertAlmostEqual(question_weight(qid, {qid: entries(True, False, True, False, True)}), 2.6)

    def test_only_recent_window_counts(self) -> None:
        qid = PairedQuestionId.paired(2, 1)
        hist = {qid: entries(*([False] * 10 + [True] * 5))}
        self.assertAlmostEqual(question_weight(qid, hist), 1.0)
        narrow = SelectionWeights(window=1)
        hist = {qid: entries(True, True, True, False)}
        self.assertAlmostEqual(question_weight(qid, hist, narrow), 5.0)


class SelectQuestionTests(unittest.TestCase):
    def test_empty_pool_returns_none(self) -> None:
        self.assertIsNone(select_question([], {}, rng=random.Random(0)))

    def test_choice_is_always_available(self) -> None:
        pool = ids(7)
        hist = {pool[0]: entries(True, True, True), pool[3]: entries(False, False)}
        rng = random.Random(11)
        for _ in range(1000):
            self.assertIn(select_question(pool, hist, rng=rng), pool)

    def test_uniform_without_history(self) -> None:
        pool = ids(4)
        rng = random.Random(1234)
        counts = Counter(select_question(pool, {}, rng=rng) for _ in range(4000))
        for qid in pool:
            self.assertLess(abs(counts[qid] - 1000), 150)

    def test_missed_questions_come_back_more_often(self) -> None:
        pool = ids(2)
        hist = {pool[0]: entries(True, True, True, True, True), pool[1]: entries(False, False)}
        rng = random.Random(99)
        counts = Counter(select_question(pool, hist, rng=rng) for _ in range(3000))
        self.assertGreater(counts[pool[1]], counts[pool[0]] * 3)

    def test_zero_weights_fall_back_to_first(self) -> None:
        pool = ids(3)
        zero = SelectionWeights(unanswered=0.0, incorrect=0.0, correct=0.0)
        self.assertEqual(select_question(pool, {}, rng=random.Random(5), weights=zero), pool[0])

    def test_same_seed_same_choice(self) -> None:
        pool = ids(10)
        rng_a, rng_b = random.Random(3), random.Random(3)
        a = [select_question(pool, {}, rng=rng_a) for _ in range(20)]
        b = [select_question(pool, {}, rng=rng_b) for _ in range(20)]
        self.assertEqual(a, b)


class HistoryHelperTests(unittest.TestCase):
    def test_record_answer_returns_new_map(self) -> None:
        qid = PairedQuestionId.paired(1, 0)
        before = {qid: entries(True)}
        after = record_answer(before, qid, False, T0 + timedelta(hours=1))
        self.assertEqual(len(before[qid]), 1)
        self.assertEqual([e.correct for e in after[qid]], [True, False])

    def test_recent_and_merge(self) -> None:
        qid = PairedQuestionId.paired(1, 0)
        hist = entries(True, False, True)
        self.assertEqual(recent(hist, 2), hist[1:])
        self.assertEqual(recent(hist, 0), ())
        merged = merge({qid: (hist[2],)}, {qid: (hist[0],)})
        self.assertEqual(merged[qid], (hist[0], hist[2]))
        self.assertEqual(DEFAULT_WEIGHTS.window, 5)


if __name__ == "__main__":
    unittest.main()
