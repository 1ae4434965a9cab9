"""Stored-week validator — checks a persisted week against the ranking rules.

Checks:
  1. The week has at least one pick
  2. Ranks are exactly 1..N
  3. Scores are non-increasing by rank
  4. Each rationale reproduces its pick's score
  5. Each rationale momentum lies in [-1.0, 1.0]

Usage:
    python -m weekly_picks.pipeline.validator [path/to/weekly_picks.db]
"""

import math
import sys
from typing import List, Tuple

from weekly_picks.scoring.aggregate import MOMENTUM_MAX, MOMENTUM_MIN, aggregate
from weekly_picks.store.db import Database
from weekly_picks.store.weeks import WeekStore

_SCORE_TOLERANCE = 1e-9


def validate_week(weeks: WeekStore, week_id: int) -> Tuple[bool, List[str]]:
    """Run all validation checks against one stored week.

    Args:
        weeks: Week Store to read from.
        week_id: Week to validate.

    Returns:
        Tuple of ``(passed: bool, messages: list[str])``.
        ``messages`` contains PASS/FAIL lines for each check.
    """
    picks = weeks.picks_for_week(week_id)
    if not picks:
        return False, [f"FAIL  week {week_id} has no picks"]

    messages: List[str] = [f"PASS  week {week_id} has {len(picks)} picks"]
    passed = True

    # ── check 2: contiguous ranks ─────────────────────────────────────────────
    ranks = [p.rank for p in picks]
    expected = list(range(1, len(picks) + 1))
    if ranks == expected:
        messages.append(f"PASS  ranks = 1..{len(picks)}")
    else:
        messages.append(f"FAIL  ranks = {ranks} (expected {expected})")
        passed = False

    # ── check 3: non-increasing scores ────────────────────────────────────────
    inversions = [
        (a.rank, b.rank) for a, b in zip(picks, picks[1:]) if b.score > a.score
    ]
    if not inversions:
        messages.append("PASS  scores non-increasing by rank")
    else:
        messages.append(f"FAIL  score inversions at ranks {inversions}")
        passed = False

    # ── check 4: rationale reproduces score ───────────────────────────────────
    mismatched = []
    for p in picks:
        r = p.rationale
        recomputed = aggregate(r.sentiment_score, r.event_score, r.momentum)
        if not math.isclose(recomputed, p.score, rel_tol=0.0, abs_tol=_SCORE_TOLERANCE):
            mismatched.append((p.ticker, p.score, recomputed))
    if not mismatched:
        messages.append("PASS  every rationale reproduces its score")
    else:
        messages.append(f"FAIL  rationale/score mismatch: {mismatched[:3]}")
        passed = False

    # ── check 5: momentum range ───────────────────────────────────────────────
    out_of_range = [
        (p.ticker, p.rationale.momentum)
        for p in picks
        if not (MOMENTUM_MIN <= p.rationale.momentum <= MOMENTUM_MAX)
    ]
    if not out_of_range:
        messages.append("PASS  momentum ∈ [-1.0, 1.0] for all picks")
    else:
        messages.append(f"FAIL  momentum out of range: {out_of_range[:3]}")
        passed = False

    return passed, messages


def main() -> int:
    db_path = sys.argv[1] if len(sys.argv) > 1 else "output/weekly_picks.db"
    weeks = WeekStore(Database(db_path))
    week = weeks.latest_week()
    if week is None:
        print(f"No weeks stored in {db_path}")
        return 1

    print(f"Validating week {week.id} ({week.week_start}..{week.week_end})")
    passed, messages = validate_week(weeks, week.id)
    for msg in messages:
        print(msg)
    if passed:
        print("\nVALIDATION PASSED ✓")
        return 0
    print("\nVALIDATION FAILED ✗")
    return 1


if __name__ == "__main__":
    sys.exit(main())
