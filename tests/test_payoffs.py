"""Tests for the shared expected-payoff helpers."""
from __future__ import annotations

import numpy as np
import pytest

from nashlab.core.payoffs import (
    action_payoffs,
    expected_payoffs,
    iter_profiles,
    normalize,
    pure_distribution,
)


class TestProfiles:
    def test_first_player_is_outermost(self):
        assert list(iter_profiles(2, 2)) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_profile_count(self):
        assert len(list(iter_profiles(3, 3))) == 27

    def test_pure_distribution(self):
        assert pure_distribution(2, 3) == [0.0, 0.0, 1.0]


class TestExpectedPayoffs:
    def test_bimatrix_matches_bilinear_form(self, chicken):
        A, B = chicken.payoff_arrays()
        x = np.array([0.3, 0.7])
        y = np.array([0.6, 0.4])
        assert expected_payoffs([A, B], [x, y]) == pytest.approx([x @ A @ y, x @ B @ y])

    def test_action_payoffs_for_column_player(self, chicken):
        _, B = chicken.payoff_arrays()
        x = np.array([0.25, 0.75])
        assert action_payoffs(B, [x, np.array([0.5, 0.5])], 1) == pytest.approx(x @ B)

    def test_three_players(self, three_player_majority):
        arrays = three_player_majority.payoff_arrays()
        uniform = [np.array([0.5, 0.5])] * 3
        # Two of eight profiles pay 1
        assert expected_payoffs(arrays, uniform) == pytest.approx([0.25, 0.25, 0.25])

    def test_three_player_action_payoffs(self, three_player_majority):
        arrays = three_player_majority.payoff_arrays()
        dists = [np.array([1.0, 0.0]), np.array([1.0, 0.0]), np.array([0.5, 0.5])]
        assert action_payoffs(arrays[2], dists, 2) == pytest.approx([1.0, 0.0])


class TestNormalize:
    def test_rescales_in_place(self):
        dist = np.array([1.0, 3.0])
        result = normalize(dist)
        assert result is dist
        assert dist == pytest.approx([0.25, 0.75])

    def test_zero_sum_left_untouched(self):
        dist = np.zeros(3)
        assert normalize(dist) == pytest.approx([0.0, 0.0, 0.0])
