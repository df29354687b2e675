import unittest
from datetime import datetime, timedelta, timezone

from checkin_bot.engine.policy import (
    REASON_ALREADY_REMINDED,
    REASON_BELOW_THRESHOLD,
    REASON_HUMAN_AFTER_REMINDER,
    REASON_NO_PRIOR_REMINDER,
    ApplyLabel,
    NoAction,
    PostComment,
    days_since,
    decide,
)
from checkin_bot.engine.timeline import ActivitySummary, Comment, classify


NOW = datetime(2024, 6, 20, 9, 30, tzinfo=timezone.utc)
BOT = "checkin-bot[bot]"


def _ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def _summary(human_days_ago: float, bot_days_ago=None, stop=False) -> ActivitySummary:
    return ActivitySummary(
        last_human_activity=_ago(human_days_ago),
        last_bot_activity=_ago(bot_days_ago) if bot_days_ago is not None else None,
        has_stop_signal=stop,
    )


class DecideTests(unittest.TestCase):
    def test_stop_signal_takes_precedence(self):
        for summary in (
            _summary(0.1, stop=True),
            _summary(30, stop=True),
            _summary(30, bot_days_ago=1, stop=True),
            _summary(30, bot_days_ago=40, stop=True),
        ):
            self.assertEqual(decide(summary, NOW, 7, "ignore-checkin"), ApplyLabel(label="ignore-checkin"))

    def test_below_threshold_is_no_action(self):
        decision = decide(_summary(6.99), NOW, 7, "ignore-checkin")
        self.assertEqual(decision, NoAction(reason=REASON_BELOW_THRESHOLD))

    def test_threshold_is_inclusive(self):
        decision = decide(_summary(7), NOW, 7, "ignore-checkin")
        self.assertIsInstance(decision, PostComment)
        self.assertEqual(decision.reason, REASON_NO_PRIOR_REMINDER)
        just_below = decide(_summary(7 - 1e-6), NOW, 7, "ignore-checkin")
        self.assertIsInstance(just_below, NoAction)

    def test_fractional_threshold_is_honoured(self):
        self.assertIsInstance(decide(_summary(0.6), NOW, 0.5, "l"), PostComment)
        self.assertIsInstance(decide(_summary(0.4), NOW, 0.5, "l"), NoAction)

    def test_human_after_bot_rearms_reminder(self):
        decision = decide(_summary(10, bot_days_ago=12), NOW, 7, "l")
        self.assertEqual(decision, PostComment(reason=REASON_HUMAN_AFTER_REMINDER))

    def test_bot_after_human_suppresses_duplicate(self):
        decision = decide(_summary(10, bot_days_ago=2), NOW, 7, "l")
        self.assertEqual(decision, NoAction(reason=REASON_ALREADY_REMINDED))

    def test_same_instant_does_not_rearm(self):
        decision = decide(_summary(9, bot_days_ago=9), NOW, 7, "l")
        self.assertEqual(decision, NoAction(reason=REASON_ALREADY_REMINDED))

    def test_decide_is_deterministic(self):
        summary = _summary(8, bot_days_ago=9)
        self.assertEqual(decide(summary, NOW, 7, "l"), decide(summary, NOW, 7, "l"))

    def test_days_since_is_fractional(self):
        self.assertAlmostEqual(days_since(_summary(1.5), NOW), 1.5)

    def test_naive_datetimes_are_read_as_utc(self):
        summary = ActivitySummary(
            last_human_activity=datetime(2024, 6, 1),
            last_bot_activity=None,
            has_stop_signal=False,
        )
        decision = decide(summary, datetime(2024, 6, 20), 7, "l")
        self.assertEqual(decision, PostComment(reason=REASON_NO_PRIOR_REMINDER))
        self.assertAlmostEqual(days_since(summary, datetime(2024, 6, 20)), 19)

    def test_mixed_naive_and_aware_datetimes(self):
        summary = ActivitySummary(
            last_human_activity=datetime(2024, 6, 1, 12, 0),
            last_bot_activity=datetime(2024, 6, 1, 11, 0, tzinfo=timezone.utc),
            has_stop_signal=False,
        )
        self.assertEqual(decide(summary, NOW, 7, "l"), PostComment(reason=REASON_HUMAN_AFTER_REMINDER))

        reminded = ActivitySummary(
            last_human_activity=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
            last_bot_activity=datetime(2024, 6, 2),
            has_stop_signal=False,
        )
        self.assertEqual(decide(reminded, datetime(2024, 6, 20), 7, "l"), NoAction(reason=REASON_ALREADY_REMINDED))


class EndToEndScenarioTests(unittest.TestCase):
    def test_quiet_item_gets_reminded_only_past_threshold(self):
        created = _ago(10)
        comments = [Comment(author="alice", body="any news?", created_at=_ago(9))]
        summary = classify(created, comments, BOT, "checkin stop")

        self.assertIsInstance(decide(summary, NOW, 7, "ignore-checkin"), PostComment)
        self.assertIsInstance(decide(summary, NOW, 10, "ignore-checkin"), NoAction)

    def test_human_and_bot_at_same_instant(self):
        created = _ago(10)
        comments = [
            Comment(author="alice", body="still broken", created_at=_ago(9)),
            Comment(author=BOT, body="Checking in!", created_at=_ago(9)),
        ]
        summary = classify(created, comments, BOT, "checkin stop")
        self.assertIsInstance(decide(summary, NOW, 7, "ignore-checkin"), NoAction)


if __name__ == "__main__":
    unittest.main()
