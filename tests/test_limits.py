"""Test the limit engine"""

import pytest

from smart_playlist.smart.limits import (
    DISABLED_LIMIT,
    EnabledLimit,
    LimitKind,
    apply_limit,
    is_limit_reached,
    is_limit_satisfied,
    parse_limit_spec
)


@pytest.fixture
def three_tracks(make_track):
    return [
        make_track('t1', duration_ms=120000),
        make_track('t2', duration_ms=100000),
        make_track('t3', duration_ms=90000),
    ]


class TestLimitParsing:
    """Test validation of raw limit input"""

    def test_parse_count_limit(self):
        """Test a valid count limit"""
        assert parse_limit_spec('on', 'count', '25') == EnabledLimit(LimitKind.COUNT, 25)

    def test_parse_duration_limit(self):
        """Test a valid duration limit in milliseconds"""
        assert parse_limit_spec(True, 'duration', 3600000) == EnabledLimit(LimitKind.DURATION, 3600000)

    @pytest.mark.parametrize("enabled,kind,value", [
        (None, 'count', '10'),
        ('on', 'weight', '10'),
        ('on', 'count', 'ten'),
        ('on', 'count', '-1'),
        ('on', None, None),
    ])
    def test_invalid_input_disables_limit(self, enabled, kind, value):
        """Test invalid input yields the disabled limit"""
        assert parse_limit_spec(enabled, kind, value) is DISABLED_LIMIT


class TestApplyLimit:
    """Test truncation"""

    def test_duration_excludes_first_track_over_budget(self, three_tracks):
        """Test 120000 + 100000 fit in 300000 but adding 90000 does not"""
        result = apply_limit(three_tracks, EnabledLimit(LimitKind.DURATION, 300000))

        assert [track.id for track in result] == ['t1', 't2']

    def test_duration_stops_at_first_overflow(self, make_track):
        """Test later short tracks are not considered after an overflow"""
        tracks = [
            make_track('t1', duration_ms=200000),
            make_track('t2', duration_ms=200000),
            make_track('t3', duration_ms=50000),
        ]

        result = apply_limit(tracks, EnabledLimit(LimitKind.DURATION, 300000))

        assert [track.id for track in result] == ['t1']

    def test_duration_exact_budget_is_kept(self, three_tracks):
        """Test a total equal to the budget is within it"""
        result = apply_limit(three_tracks, EnabledLimit(LimitKind.DURATION, 310000))

        assert len(result) == 3

    def test_count_limit(self, three_tracks):
        """Test count 2 keeps the first two tracks"""
        result = apply_limit(three_tracks, EnabledLimit(LimitKind.COUNT, 2))

        assert [track.id for track in result] == ['t1', 't2']

    def test_disabled_limit_returns_everything(self, three_tracks):
        """Test a disabled limit leaves the list unchanged"""
        result = apply_limit(three_tracks, DISABLED_LIMIT)

        assert result == three_tracks
        assert result is not three_tracks


class TestLimitSatisfied:
    """Test early-stop detection"""

    def test_count_satisfied(self, three_tracks):
        assert is_limit_satisfied(three_tracks, EnabledLimit(LimitKind.COUNT, 3))
        assert not is_limit_satisfied(three_tracks, EnabledLimit(LimitKind.COUNT, 4))

    def test_duration_satisfied(self, three_tracks):
        assert is_limit_satisfied(three_tracks, EnabledLimit(LimitKind.DURATION, 300000))
        assert is_limit_satisfied(three_tracks, EnabledLimit(LimitKind.DURATION, 310000))
        assert not is_limit_satisfied(three_tracks, EnabledLimit(LimitKind.DURATION, 400000))

    def test_disabled_never_satisfied(self, three_tracks):
        assert not is_limit_satisfied(three_tracks, DISABLED_LIMIT)

    def test_running_totals(self):
        """Test the check from running count and duration totals"""
        assert is_limit_reached(2, 0, EnabledLimit(LimitKind.COUNT, 2))
        assert not is_limit_reached(1, 10 ** 9, EnabledLimit(LimitKind.COUNT, 2))
        assert is_limit_reached(1, 300000, EnabledLimit(LimitKind.DURATION, 300000))
        assert not is_limit_reached(5, 220000, EnabledLimit(LimitKind.DURATION, 300000))
        assert not is_limit_reached(10 ** 6, 10 ** 9, DISABLED_LIMIT)
