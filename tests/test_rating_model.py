"""Tests for the post-match rating model."""

import pytest

from aura_tournament.core.config import RatingConfig
from aura_tournament.ranking import AuraRatingModel, PlayerSkill, phi, team_skill


def new_players(*ids: int) -> list[PlayerSkill]:
    return [PlayerSkill(player_id=i, mu=25.0, sigma=8.33) for i in ids]


class TestGaussianHelpers:
    """Tests for phi and team aggregation."""

    def test_phi_symmetry(self):
        """Test the normal CDF is 0.5 at zero and symmetric."""
        assert phi(0.0) == pytest.approx(0.5)
        assert phi(1.0) + phi(-1.0) == pytest.approx(1.0)
        assert phi(1.96) == pytest.approx(0.975, abs=1e-3)

    def test_team_skill(self):
        """Test team mu is the mean and sigma the root mean square."""
        team = [PlayerSkill(1, 20.0, 3.0), PlayerSkill(2, 30.0, 4.0)]
        skill = team_skill(team)
        assert skill.mu == pytest.approx(25.0)
        assert skill.sigma == pytest.approx((12.5) ** 0.5)

    def test_empty_team(self):
        """Test an empty team is rejected."""
        with pytest.raises(ValueError):
            team_skill([])


class TestNewPlayersScenario:
    """Two new players per side, final score 11-7."""

    @pytest.fixture
    def result(self):
        model = AuraRatingModel()
        return model.rate(new_players(1, 2), new_players(3, 4), 11, 7)

    def test_expected_is_even(self, result):
        """Test identical ratings give an expected score of 0.5."""
        assert result.expected_a == pytest.approx(0.5)
        assert result.actual_a == 1.0

    def test_margin_multiplier(self, result):
        """Test a 4-point margin gives 1 + 4/11."""
        assert result.margin_multiplier == pytest.approx(1 + 4 / 11)

    def test_team_delta(self, result):
        """Test team delta is K * 0.5 * margin."""
        assert result.team_delta_a == pytest.approx(2.5 * 0.5 * (1 + 4 / 11))
        assert result.team_delta_a == pytest.approx(1.70, abs=0.01)

    def test_mass_conserved_before_taper(self, result):
        """Test Team B's delta is the exact opposite of Team A's."""
        assert result.team_delta_b == -result.team_delta_a

    def test_even_split(self, result):
        """Test identical teammates receive identical updates."""
        a1, a2 = result.team_a
        b1, b2 = result.team_b
        assert a1.new_mu == pytest.approx(a2.new_mu)
        assert b1.new_mu == pytest.approx(b2.new_mu)

    def test_tapered_values(self, result):
        """Test gains taper by headroom squared and losses by floor room."""
        half = result.team_delta_a / 2
        assert result.team_a[0].new_mu == pytest.approx(25.0 + half * 0.75**2)
        assert result.team_b[0].new_mu == pytest.approx(25.0 - half * 0.25)

    def test_sigma_shrinks(self, result):
        """Test sigma shrinks by tau scaled with surprise."""
        expected = 8.33 * (1 - 0.05 * (1 + 0.5 * 0.5))
        for update in result.updates:
            assert update.new_sigma == pytest.approx(expected)
            assert update.new_sigma < update.old_sigma


class TestRateMatch:
    """Tests for general rating behavior."""

    def test_loss_for_team_a(self):
        """Test Team A loses rating when Team B scores more."""
        model = AuraRatingModel()
        result = model.rate(new_players(1, 2), new_players(3, 4), 8, 11)
        assert result.actual_a == 0.0
        assert result.team_delta_a < 0
        assert all(u.delta < 0 for u in result.team_a)
        assert all(u.delta > 0 for u in result.team_b)

    def test_favorite_expected_above_half(self):
        """Test a stronger Team A is expected to win."""
        model = AuraRatingModel()
        strong = [PlayerSkill(1, 35.0, 3.0), PlayerSkill(2, 35.0, 3.0)]
        weak = [PlayerSkill(3, 20.0, 3.0), PlayerSkill(4, 20.0, 3.0)]
        assert model.expected_win_probability(strong, weak) > 0.9

    def test_upset_moves_more_than_expected_win(self):
        """Test an upset produces a larger delta than the expected result."""
        model = AuraRatingModel()
        strong = [PlayerSkill(1, 35.0, 3.0), PlayerSkill(2, 35.0, 3.0)]
        weak = [PlayerSkill(3, 20.0, 3.0), PlayerSkill(4, 20.0, 3.0)]
        expected = model.rate(strong, weak, 11, 9)
        upset = model.rate(strong, weak, 9, 11)
        assert abs(upset.team_delta_a) > abs(expected.team_delta_a)

    def test_sigma_floor(self):
        """Test sigma never drops below the floor."""
        model = AuraRatingModel()
        settled = [PlayerSkill(1, 25.0, 1.0), PlayerSkill(2, 25.0, 1.0)]
        result = model.rate(settled, new_players(3, 4), 11, 0)
        for update in result.team_a:
            assert update.new_sigma == pytest.approx(1.0)

    def test_mu_stays_in_bounds(self):
        """Test mu is clamped to [0, max_rating]."""
        model = AuraRatingModel(RatingConfig(k_factor=500.0))
        top = [PlayerSkill(1, 99.0, 8.0), PlayerSkill(2, 99.5, 8.0)]
        bottom = [PlayerSkill(3, 0.5, 8.0), PlayerSkill(4, 1.0, 8.0)]
        result = model.rate(bottom, top, 11, 0)
        for update in result.updates:
            assert 0.0 <= update.new_mu <= 100.0

    def test_no_gain_at_max_rating(self):
        """Test a player at max rating cannot gain."""
        model = AuraRatingModel()
        assert model.taper(100.0, 5.0) == 0.0
        assert model.taper(0.0, -5.0) == 0.0


class TestSplitWeights:
    """Tests for splitting a team delta between teammates."""

    def test_weights_sum_to_one(self):
        """Test weights are normalized."""
        model = AuraRatingModel()
        team = [PlayerSkill(1, 30.0, 2.0), PlayerSkill(2, 20.0, 6.0)]
        assert sum(model.split_weights(team)) == pytest.approx(1.0)

    def test_uncertain_player_moves_more(self):
        """Test the higher-sigma teammate gets the larger share at equal mu."""
        model = AuraRatingModel()
        team = [PlayerSkill(1, 25.0, 2.0), PlayerSkill(2, 25.0, 6.0)]
        certain, uncertain = model.split_weights(team)
        assert uncertain > certain

    def test_large_ratings_stay_finite(self):
        """Test the softmax does not overflow for large mu."""
        model = AuraRatingModel(RatingConfig(softmax_temp=0.001))
        team = [PlayerSkill(1, 90.0, 2.0), PlayerSkill(2, 10.0, 2.0)]
        weights = model.split_weights(team)
        assert sum(weights) == pytest.approx(1.0)
        assert weights[0] > weights[1]
