"""Tests for provider record normalization."""

import pytest

from search_detective.modules.keyword_research.normalizer import (
    decode_competition,
    decode_cpc,
    decode_volume,
    normalize_metric,
)
from search_detective.modules.keyword_research.records import NormalizedMetric


class TestDecodeVolume:

    def test_vol_field(self):
        assert decode_volume({"vol": 120}) == 120

    def test_volume_field(self):
        assert decode_volume({"volume": 90}) == 90

    def test_vol_wins_over_volume(self):
        assert decode_volume({"vol": 50, "volume": 90}) == 50

    def test_zero_vol_falls_through_to_volume(self):
        assert decode_volume({"vol": 0, "volume": 30}) == 30

    def test_fractional_volume_rounds_half_up(self):
        assert decode_volume({"vol": 10.5}) == 11

    @pytest.mark.parametrize("raw", [
        None,
        {},
        {"vol": None},
        {"vol": "120"},
        {"vol": -5},
        {"vol": True},
        {"vol": float("nan")},
        "not a dict",
    ])
    def test_unusable_volume_is_zero(self, raw):
        assert decode_volume(raw) == 0


class TestDecodeCpc:

    def test_bare_number(self):
        assert decode_cpc({"cpc": 4.5}) == 4.5

    def test_nested_number(self):
        assert decode_cpc({"cpc": {"value": 3.25}}) == 3.25

    def test_nested_numeric_string(self):
        assert decode_cpc({"cpc": {"value": "4.50"}}) == 4.5

    def test_rounds_to_cents_half_up(self):
        assert decode_cpc({"cpc": 4.505}) == 4.51
        assert decode_cpc({"cpc": 1.234}) == 1.23

    @pytest.mark.parametrize("raw", [
        None,
        {},
        {"cpc": None},
        {"cpc": "4.50"},
        {"cpc": {"value": "abc"}},
        {"cpc": {"value": None}},
        {"cpc": {}},
        {"cpc": [1.0]},
        {"cpc": -1.0},
        {"cpc": {"value": "-2"}},
    ])
    def test_unusable_cpc_is_zero(self, raw):
        assert decode_cpc(raw) == 0.0


class TestDecodeCompetition:

    def test_fraction_becomes_percentage(self):
        assert decode_competition({"competition": 0.55}, volume=120) == 55

    def test_fraction_rounds_half_up(self):
        assert decode_competition({"competition": 0.005}, volume=120) == 1

    def test_one_is_treated_as_fraction(self):
        assert decode_competition({"competition": 1}, volume=120) == 100

    def test_percentage_kept(self):
        assert decode_competition({"competition": 42}, volume=120) == 42

    def test_percentage_capped_at_100(self):
        assert decode_competition({"competition": 180}, volume=120) == 100

    def test_zero_volume_forces_zero(self):
        assert decode_competition({"competition": 0.9}, volume=0) == 0

    @pytest.mark.parametrize("raw", [None, {}, {"competition": None}, {"competition": -0.3}, {"competition": "0.5"}])
    def test_unusable_competition_is_zero(self, raw):
        assert decode_competition(raw, volume=120) == 0


class TestNormalizeMetric:

    def test_full_record(self):
        raw = {"keyword": "AC repair Boise", "vol": 120, "cpc": 4.50, "competition": 0.55}
        assert normalize_metric(raw) == NormalizedMetric(volume=120, cpc=4.5, competition=55)

    def test_absent_record(self):
        assert normalize_metric(None) == NormalizedMetric(volume=0, cpc=0.0, competition=0)

    def test_zero_volume_keeps_cpc_but_zeroes_competition(self):
        metric = normalize_metric({"vol": 0, "cpc": {"value": "2.10"}, "competition": 0.8})
        assert metric.volume == 0
        assert metric.cpc == 2.1
        assert metric.competition == 0

    @pytest.mark.parametrize("raw", [
        None,
        {},
        {"vol": 0, "competition": 0.7},
        {"volume": 0, "competition": 77},
        {"vol": None, "volume": None, "competition": 1},
        {"vol": 15, "competition": 0.2},
    ])
    def test_zero_volume_implies_zero_competition(self, raw):
        metric = normalize_metric(raw)
        if metric.volume == 0:
            assert metric.competition == 0

    def test_garbage_never_raises(self):
        for raw in ({"vol": object()}, {"cpc": object()}, {"competition": []}, 42, []):
            metric = normalize_metric(raw)
            assert metric.volume >= 0
            assert metric.cpc >= 0
            assert 0 <= metric.competition <= 100
