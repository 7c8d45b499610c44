"""Tests for deterministic latest-build selection."""
import pytest

from cicd_dashboard.domain.latest_build import reduce_latest
from cicd_dashboard.schemas.builds import BuildStatus
from tests.conftest import make_build

pytestmark = pytest.mark.unit


class TestReduceLatest:
    """Latest build = max started_at, ties to the highest id."""

    def test_empty_sequence_returns_none(self):
        assert reduce_latest([]) is None

    def test_single_build_is_latest(self):
        build = make_build(1)
        assert reduce_latest([build]) is build

    def test_latest_started_at_wins_regardless_of_order(self):
        old = make_build(10, started_minutes=0)
        newest = make_build(11, started_minutes=45)
        middle = make_build(12, started_minutes=20)

        assert reduce_latest([old, newest, middle]) is newest
        assert reduce_latest([middle, old, newest]) is newest

    def test_started_at_beats_id(self):
        """A lower id that started later is still the latest."""
        later_low_id = make_build(3, started_minutes=10)
        earlier_high_id = make_build(99, started_minutes=5)

        assert reduce_latest([earlier_high_id, later_low_id]) is later_low_id

    def test_tie_on_started_at_highest_id_wins(self):
        a = make_build(7, started_minutes=30, status=BuildStatus.FAILED)
        b = make_build(9, started_minutes=30, status=BuildStatus.SUCCESS)
        c = make_build(8, started_minutes=30, status=BuildStatus.PENDING)

        assert reduce_latest([a, b, c]) is b
        assert reduce_latest([c, b, a]) is b
        assert reduce_latest([b, a, c]) is b

    def test_input_not_mutated(self):
        builds = [make_build(1, started_minutes=0), make_build(2, started_minutes=60)]
        before = list(builds)

        reduce_latest(builds)

        assert builds == before

    def test_accepts_tuple(self):
        builds = (make_build(1, started_minutes=5), make_build(2, started_minutes=1))
        assert reduce_latest(builds).id == 1
