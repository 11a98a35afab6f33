import unittest

from coinflip_game.core.engine.effects import (
    apply_combo_streak_bonus,
    auto_click_interval,
    heads_probability,
    luck_chance_multiplier,
    resolve_flip,
)
from coinflip_game.core.engine.models import (
    AlwaysHeadsEffect,
    AlwaysTailsEffect,
    AutoClickEffect,
    ComboEffect,
    ComboType,
    LuckEffect,
    ShavedEffect,
    WeightedEffect,
)

ADDITIVE_COMBO = ComboEffect(combo_type=ComboType.ADDITIVE, combo_multiplier=0.03)
DOUBLE_COMBO = ComboEffect(combo_type=ComboType.MULTIPLICATIVE, combo_multiplier=2)


class TestHeadsProbability(unittest.TestCase):

    def test_no_effects_is_fair(self):
        self.assertEqual(heads_probability(None, None), 0.5)

    def test_weighted_heads_face_is_clamped_to_floor(self):
        self.assertAlmostEqual(heads_probability(WeightedEffect(bias_strength=0.6), None), 0.1)

    def test_weighted_and_shaved_directions(self):
        self.assertAlmostEqual(heads_probability(WeightedEffect(bias_strength=0.2), None), 0.3)
        self.assertAlmostEqual(heads_probability(None, WeightedEffect(bias_strength=0.2)), 0.7)
        self.assertAlmostEqual(heads_probability(ShavedEffect(bias_strength=0.2), None), 0.7)
        self.assertAlmostEqual(heads_probability(None, ShavedEffect(bias_strength=0.2)), 0.3)

    def test_opposing_biases_add_up(self):
        # Shaved heads pushes heads up, weighted tails pushes heads up as well
        probability = heads_probability(ShavedEffect(bias_strength=0.1), WeightedEffect(bias_strength=0.15))
        self.assertAlmostEqual(probability, 0.75)

    def test_combo_enhances_opposite_face(self):
        shaved = ShavedEffect(bias_strength=0.2)
        self.assertAlmostEqual(heads_probability(shaved, ADDITIVE_COMBO), 0.73)
        self.assertAlmostEqual(heads_probability(shaved, DOUBLE_COMBO), 0.9)

    def test_two_combos_cancel(self):
        self.assertEqual(heads_probability(ADDITIVE_COMBO, DOUBLE_COMBO, "heads"), 0.5)
        self.assertEqual(apply_combo_streak_bonus(4, ADDITIVE_COMBO, DOUBLE_COMBO), 4)

    def test_streak_boost_follows_last_result(self):
        self.assertAlmostEqual(heads_probability(ADDITIVE_COMBO, None, "heads"), 0.53)
        self.assertAlmostEqual(heads_probability(ADDITIVE_COMBO, None, "tails"), 0.47)
        self.assertEqual(heads_probability(ADDITIVE_COMBO, None, ""), 0.5)
        # 0.5 * (2 - 1) on top of the base hits the ceiling
        self.assertAlmostEqual(heads_probability(None, DOUBLE_COMBO, "heads"), 0.9)

    def test_streak_boost_needs_empty_opposite_face(self):
        luck = LuckEffect(luck_modifier=0.1)
        self.assertEqual(heads_probability(ADDITIVE_COMBO, luck, "heads"), 0.5)

    def test_nan_bias_falls_back_to_base(self):
        self.assertEqual(heads_probability(WeightedEffect(bias_strength=float("nan")), None), 0.5)


class TestResolveFlip(unittest.TestCase):

    def test_draw_below_probability_lands_heads(self):
        self.assertTrue(resolve_flip(0.49).landed_heads)
        self.assertFalse(resolve_flip(0.5).landed_heads)
        self.assertEqual(resolve_flip(0.2).result, "heads")
        self.assertEqual(resolve_flip(0.8).result, "tails")

    def test_always_heads_on_either_face(self):
        for resolution in (
            resolve_flip(0.99, AlwaysHeadsEffect(), None),
            resolve_flip(0.99, None, AlwaysHeadsEffect()),
        ):
            self.assertTrue(resolution.landed_heads)
            self.assertTrue(resolution.forced)

    def test_always_tails_beats_bias(self):
        resolution = resolve_flip(0.0, ShavedEffect(bias_strength=0.4), AlwaysTailsEffect())
        self.assertFalse(resolution.landed_heads)
        self.assertTrue(resolution.forced)

    def test_always_heads_and_tails_cancel(self):
        resolution = resolve_flip(0.49, AlwaysHeadsEffect(), AlwaysTailsEffect())
        self.assertFalse(resolution.forced)
        self.assertEqual(resolution.heads_probability, 0.5)
        self.assertTrue(resolution.landed_heads)
        self.assertFalse(resolve_flip(0.5, AlwaysHeadsEffect(), AlwaysTailsEffect()).landed_heads)


class TestComboStreakBonus(unittest.TestCase):

    def test_additive_adds_hundredths(self):
        self.assertEqual(apply_combo_streak_bonus(1, ADDITIVE_COMBO, None), 4)

    def test_multiplicative_scales_streak(self):
        self.assertEqual(apply_combo_streak_bonus(3, None, DOUBLE_COMBO), 6)

    def test_no_bonus_when_opposite_can_be_enhanced(self):
        self.assertEqual(apply_combo_streak_bonus(3, DOUBLE_COMBO, WeightedEffect()), 3)
        self.assertEqual(apply_combo_streak_bonus(3, DOUBLE_COMBO, AutoClickEffect()), 3)

    def test_bonus_applies_next_to_luck(self):
        # The probability boost is off next to Luck but the streak bonus is not
        self.assertEqual(apply_combo_streak_bonus(2, ADDITIVE_COMBO, LuckEffect()), 5)

    def test_invalid_multiplier_keeps_streak(self):
        nan_combo = ComboEffect(combo_type=ComboType.MULTIPLICATIVE, combo_multiplier=float("nan"))
        self.assertEqual(apply_combo_streak_bonus(3, nan_combo, None), 3)
        negative = ComboEffect(combo_type=ComboType.MULTIPLICATIVE, combo_multiplier=-1)
        self.assertEqual(apply_combo_streak_bonus(3, negative, None), 0)


class TestLuckAndAutoClick(unittest.TestCase):

    def test_luck_multiplier(self):
        self.assertEqual(luck_chance_multiplier(None, None), 1.0)
        self.assertAlmostEqual(luck_chance_multiplier(LuckEffect(luck_modifier=0.05), None), 1.05)
        doubling = LuckEffect(luck_modifier=2, luck_modifier_type=ComboType.MULTIPLICATIVE)
        self.assertAlmostEqual(luck_chance_multiplier(None, doubling, base=1.5), 3.0)
        self.assertEqual(luck_chance_multiplier(LuckEffect(luck_modifier=-5), None), 0.0)

    def test_auto_click_interval(self):
        ox = AutoClickEffect(auto_click_interval=1000)
        self.assertIsNone(auto_click_interval(None, WeightedEffect()))
        self.assertEqual(auto_click_interval(ox, None), 1000)
        self.assertEqual(auto_click_interval(ox, DOUBLE_COMBO), 500)
        self.assertEqual(auto_click_interval(ADDITIVE_COMBO, ox), 940)

    def test_auto_click_interval_floor(self):
        ox = AutoClickEffect(auto_click_interval=1000)
        big = ComboEffect(combo_type=ComboType.ADDITIVE, combo_multiplier=1.0)
        self.assertEqual(auto_click_interval(ox, big), 100)
        zero = ComboEffect(combo_type=ComboType.MULTIPLICATIVE, combo_multiplier=0)
        self.assertEqual(auto_click_interval(ox, zero), 1000)


if __name__ == "__main__":
    unittest.main()
