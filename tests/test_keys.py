"""Tests for key generation policies."""

import math

import pytest

from readthrough import HashedKey, ParameterizedKey, SingletonKey
from readthrough.keys import round_half_up


class TestRoundHalfUp:
    """Tests for round_half_up."""

    def test_rounds_half_up(self) -> None:
        assert round_half_up(0.0005, 3) == "0.001"
        assert round_half_up(2.5, 0) == "3"
        assert round_half_up(-0.0005, 3) == "-0.001"

    def test_pads_to_fixed_places(self) -> None:
        assert round_half_up(37, 3) == "37.000"
        assert round_half_up(1.5, 3) == "1.500"


class TestParameterizedKey:
    """Tests for the coordinate-style policy."""

    @pytest.fixture
    def key(self) -> ParameterizedKey:
        return ParameterizedKey("lat", "lon")

    def test_format(self, key: ParameterizedKey) -> None:
        """Key is <version>:<fields>_<unit>."""
        assert key(lat=37.5665, lon=126.978) == "v1:37.567_126.978_metric"

    def test_near_duplicates_collide(self, key: ParameterizedKey) -> None:
        """Inputs differing beyond the third decimal share a key."""
        a = key(lat=37.56649, lon=126.978)
        b = key(lat=37.56651, lon=126.978)
        assert a == b == "v1:37.567_126.978_metric"

    def test_distinct_inputs_differ(self, key: ParameterizedKey) -> None:
        assert key(lat=37.566, lon=126.978) != key(lat=37.568, lon=126.978)

    def test_field_order_matters(self, key: ParameterizedKey) -> None:
        assert key(lat=1, lon=2) != key(lat=2, lon=1)

    def test_missing_and_none_normalize_to_empty(self, key: ParameterizedKey) -> None:
        """Null or blank inputs never raise."""
        assert key(lat=None, lon=None) == "v1:__metric"
        assert key() == "v1:__metric"
        assert key(lat="  ", lon=1) == "v1:_1.000_metric"

    def test_numeric_strings_are_rounded(self, key: ParameterizedKey) -> None:
        assert key(lat="37.56651", lon=" 126.9780 ") == "v1:37.567_126.978_metric"

    def test_non_numeric_strings_pass_through(self, key: ParameterizedKey) -> None:
        assert key(lat="seoul", lon=None) == "v1:seoul__metric"

    def test_non_finite_does_not_raise(self, key: ParameterizedKey) -> None:
        assert key(lat=math.nan, lon=math.inf) == "v1:nan_inf_metric"

    def test_huge_numbers_do_not_raise(self, key: ParameterizedKey) -> None:
        assert key(lat=1e30, lon=0).startswith("v1:")

    def test_rounds_through_guard_digit(self, key: ParameterizedKey) -> None:
        """Rounding goes via four places first, unlike plain half-up."""
        assert key(lat=0.00045, lon=0) == "v1:0.001_0.000_metric"
        assert key(lat=37.56649, lon=0) == "v1:37.567_0.000_metric"

    def test_version_and_unit_are_configurable(self) -> None:
        key = ParameterizedKey("lat", "lon", version="v2", unit="imperial", places=2)
        assert key(lat=1.005, lon=2) == "v2:1.01_2.00_imperial"

    def test_extra_params_ignored(self, key: ParameterizedKey) -> None:
        assert key(lat=1, lon=2, units="metric") == key(lat=1, lon=2)

    def test_requires_fields(self) -> None:
        with pytest.raises(ValueError):
            ParameterizedKey()


class TestSingletonKey:
    """Tests for the one-slot policy."""

    def test_fixed_key(self) -> None:
        key = SingletonKey("notice_list")
        assert key() == "v1:notice_list_metric"
        assert key(page=3) == "v1:notice_list_metric"


class TestHashedKey:
    """Tests for the fallback policy."""

    def test_deterministic(self) -> None:
        key = HashedKey("get_user")
        assert key(id="1", active=True) == key(active=True, id="1")
        assert key(id="1").startswith("get_user:")

    def test_different_params_differ(self) -> None:
        key = HashedKey("get_user")
        assert key(id="1") != key(id="2")
