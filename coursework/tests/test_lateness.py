from datetime import datetime, timedelta, timezone
from decimal import Decimal

from django.test import SimpleTestCase

from coursework.lateness import (
    LatePolicy,
    WindowOutcome,
    apply_late_penalty,
    compute_lateness,
    evaluate_submission_window,
    validate_score,
)
from hallmark.exceptions import ValidationError

DEADLINE = datetime(2024, 1, 10, tzinfo=timezone.utc)
POLICY = LatePolicy(accept_late=True, cutoff_days=7, penalty_percent=Decimal("10"))


class ComputeLatenessTests(SimpleTestCase):
    def test_five_hours_late(self):
        lateness = compute_lateness(datetime(2024, 1, 10, 5, tzinfo=timezone.utc), DEADLINE)
        self.assertTrue(lateness.is_late)
        self.assertEqual(lateness.hours_late, 5)

    def test_partial_hours_are_floored(self):
        lateness = compute_lateness(DEADLINE + timedelta(minutes=59), DEADLINE)
        self.assertTrue(lateness.is_late)
        self.assertEqual(lateness.hours_late, 0)

    def test_on_time_never_has_hours_late(self):
        for offset in (timedelta(0), timedelta(seconds=-1), timedelta(days=-30)):
            with self.subTest(offset=offset):
                lateness = compute_lateness(DEADLINE + offset, DEADLINE)
                self.assertFalse(lateness.is_late)
                self.assertEqual(lateness.hours_late, 0)

    def test_is_late_matches_comparison(self):
        for minutes in (-90, -1, 0, 1, 61, 60 * 24 * 9):
            now = DEADLINE + timedelta(minutes=minutes)
            with self.subTest(minutes=minutes):
                self.assertEqual(compute_lateness(now, DEADLINE).is_late, now > DEADLINE)


class SubmissionWindowTests(SimpleTestCase):
    def test_before_deadline_is_allowed(self):
        window = evaluate_submission_window(DEADLINE - timedelta(hours=1), DEADLINE, POLICY)
        self.assertIs(window.outcome, WindowOutcome.ALLOWED)
        self.assertFalse(window.lateness.is_late)

    def test_late_within_cutoff_is_allowed_and_marked_late(self):
        window = evaluate_submission_window(DEADLINE + timedelta(hours=30), DEADLINE, POLICY)
        self.assertIs(window.outcome, WindowOutcome.ALLOWED)
        self.assertTrue(window.lateness.is_late)
        self.assertEqual(window.lateness.hours_late, 30)

    def test_exactly_at_cutoff_is_allowed(self):
        window = evaluate_submission_window(DEADLINE + timedelta(hours=168), DEADLINE, POLICY)
        self.assertIs(window.outcome, WindowOutcome.ALLOWED)

    def test_past_cutoff_is_closed(self):
        now = datetime(2024, 1, 18, 1, tzinfo=timezone.utc)
        window = evaluate_submission_window(now, DEADLINE, POLICY)
        self.assertIs(window.outcome, WindowOutcome.REJECTED_CLOSED)
        self.assertEqual(window.lateness.hours_late, 193)
        self.assertEqual(window.cutoff_days, 7)

    def test_late_not_accepted_is_past_deadline(self):
        policy = LatePolicy(accept_late=False, cutoff_days=30, penalty_percent=Decimal("0"))
        for hours in (1, 24, 1000):
            with self.subTest(hours=hours):
                window = evaluate_submission_window(DEADLINE + timedelta(hours=hours), DEADLINE, policy)
                self.assertIs(window.outcome, WindowOutcome.REJECTED_PAST_DEADLINE)

    def test_missing_cutoff_defaults_to_seven_days(self):
        for cutoff in (None, 0):
            policy = LatePolicy(accept_late=True, cutoff_days=cutoff, penalty_percent=Decimal("5"))
            with self.subTest(cutoff=cutoff):
                self.assertEqual(policy.effective_cutoff_days, 7)
                allowed = evaluate_submission_window(DEADLINE + timedelta(hours=100), DEADLINE, policy)
                closed = evaluate_submission_window(DEADLINE + timedelta(hours=169), DEADLINE, policy)
                self.assertIs(allowed.outcome, WindowOutcome.ALLOWED)
                self.assertIs(closed.outcome, WindowOutcome.REJECTED_CLOSED)


class LatePenaltyTests(SimpleTestCase):
    def test_one_started_day_costs_one_penalty(self):
        penalty = apply_late_penalty(80, 100, True, 5, POLICY)
        self.assertEqual(penalty.penalty_applied, Decimal("10"))
        self.assertEqual(penalty.final_score, Decimal("70"))

    def test_penalty_counts_started_days(self):
        self.assertEqual(apply_late_penalty(80, 100, True, 24, POLICY).penalty_applied, Decimal("10"))
        self.assertEqual(apply_late_penalty(80, 100, True, 25, POLICY).penalty_applied, Decimal("20"))
        self.assertEqual(apply_late_penalty(80, 100, True, 72, POLICY).penalty_applied, Decimal("30"))

    def test_not_late_is_never_penalised(self):
        penalty = apply_late_penalty(5, 100, False, 0, POLICY)
        self.assertEqual(penalty.penalty_applied, Decimal("0"))
        self.assertEqual(penalty.final_score, Decimal("5"))

    def test_late_not_accepted_is_not_penalised(self):
        policy = LatePolicy(accept_late=False, cutoff_days=7, penalty_percent=Decimal("50"))
        penalty = apply_late_penalty(60, 100, True, 48, policy)
        self.assertEqual(penalty.penalty_applied, Decimal("0"))
        self.assertEqual(penalty.final_score, Decimal("60"))

    def test_penalty_is_flat_points_not_a_percentage(self):
        # 10 per day on a 40/50 score: a percentage reading would give 36.
        penalty = apply_late_penalty(40, 50, True, 10, POLICY)
        self.assertEqual(penalty.penalty_applied, Decimal("10"))
        self.assertEqual(penalty.final_score, Decimal("30"))

    def test_final_score_floors_at_zero(self):
        penalty = apply_late_penalty(15, 100, True, 24 * 5, POLICY)
        self.assertEqual(penalty.penalty_applied, Decimal("50"))
        self.assertEqual(penalty.final_score, Decimal("0"))

    def test_penalty_is_monotonic_in_hours_late(self):
        previous_penalty = Decimal("0")
        previous_final = Decimal("75")
        for hours in range(0, 24 * 10, 7):
            penalty = apply_late_penalty(75, 100, hours > 0, hours, POLICY)
            with self.subTest(hours=hours):
                self.assertGreaterEqual(penalty.penalty_applied, previous_penalty)
                self.assertLessEqual(penalty.final_score, previous_final)
                self.assertGreaterEqual(penalty.final_score, 0)
                self.assertLessEqual(penalty.final_score, Decimal("75"))
            previous_penalty = penalty.penalty_applied
            previous_final = penalty.final_score

    def test_score_bounds_hold_for_valid_inputs(self):
        for raw in (0, 1, 50, 99.5, 100):
            for hours in (0, 3, 30, 200):
                penalty = apply_late_penalty(raw, 100, hours > 0, hours, POLICY)
                with self.subTest(raw=raw, hours=hours):
                    self.assertTrue(0 <= penalty.final_score <= Decimal(str(raw)) <= 100)


class ValidateScoreTests(SimpleTestCase):
    def test_accepts_bounds(self):
        self.assertEqual(validate_score(0, 100), Decimal("0"))
        self.assertEqual(validate_score("100", 100), Decimal("100"))

    def test_rejects_out_of_range_and_garbage(self):
        for score in (-1, 100.01, "abc", None, "NaN"):
            with self.subTest(score=score):
                with self.assertRaisesMessage(ValidationError, "Score must be between 0 and 100"):
                    validate_score(score, 100)
