"""
Effect compositor.

Combines the effects of the two active faces into a heads probability and
into adjustments of the streak counter, auto-click speed and unlock luck.
Everything here is pure; the random draw is passed in by the caller.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from .models import ComboType, CoinEffectType, effect_type

BASE_HEADS_PROBABILITY = 0.5
PROBABILITY_FLOOR = 0.1
PROBABILITY_CEILING = 0.9

AUTO_CLICK_FLOOR_MS = 100
# An additive combo of 1.0 takes two seconds off the auto-click interval
ADDITIVE_INTERVAL_STEP_MS = 2000

ENHANCEABLE_EFFECTS = (
    CoinEffectType.WEIGHTED,
    CoinEffectType.SHAVED,
    CoinEffectType.AUTO_CLICK,
)


@dataclass(frozen=True)
class FlipResolution:
    landed_heads: bool
    heads_probability: float
    forced: bool = False

    @property
    def result(self) -> str:
        return "heads" if self.landed_heads else "tails"


def _is(effect, kind: CoinEffectType) -> bool:
    return effect_type(effect) == kind


def _clamp(value: float, low: float, high: float, fallback: float) -> float:
    if math.isnan(value):
        return fallback
    return min(high, max(low, value))


# ==================== Combo Enhancement ====================

def enhance_effect(effect, combo):
    """Copy of ``effect`` boosted by the opposite face's combo."""
    kind = effect_type(effect)
    additive = combo.combo_type == ComboType.ADDITIVE
    multiplier = combo.combo_multiplier

    if kind in (CoinEffectType.WEIGHTED, CoinEffectType.SHAVED):
        if additive:
            bias = effect.bias_strength + multiplier
        else:
            bias = effect.bias_strength * multiplier
        return effect.model_copy(update={"bias_strength": bias})

    if kind == CoinEffectType.AUTO_CLICK:
        interval = effect.auto_click_interval
        if additive:
            interval -= int(round(multiplier * ADDITIVE_INTERVAL_STEP_MS))
        elif multiplier > 0:
            interval = int(interval / multiplier)
        return effect.model_copy(update={"auto_click_interval": max(AUTO_CLICK_FLOOR_MS, interval)})

    return effect


def enhanced_effects(heads_effect, tails_effect) -> Tuple:
    """
    Apply each face's combo to the opposite face.

    Two combos cancel each other out and nothing is enhanced.
    """
    heads_combo = _is(heads_effect, CoinEffectType.COMBO)
    tails_combo = _is(tails_effect, CoinEffectType.COMBO)
    if heads_combo and tails_combo:
        return heads_effect, tails_effect

    heads_out, tails_out = heads_effect, tails_effect
    if tails_combo and effect_type(heads_effect) in ENHANCEABLE_EFFECTS:
        heads_out = enhance_effect(heads_effect, tails_effect)
    if heads_combo and effect_type(tails_effect) in ENHANCEABLE_EFFECTS:
        tails_out = enhance_effect(tails_effect, heads_effect)
    return heads_out, tails_out


def _single_combo(heads_effect, tails_effect):
    """(combo, opposite effect) when exactly one face is a combo, else None."""
    heads_combo = _is(heads_effect, CoinEffectType.COMBO)
    tails_combo = _is(tails_effect, CoinEffectType.COMBO)
    if heads_combo == tails_combo:
        return None
    if heads_combo:
        return heads_effect, tails_effect
    return tails_effect, heads_effect


# ==================== Heads Probability ====================

def face_bias(effect, on_heads_face: bool) -> float:
    """
    Probability shift from one face's effect (positive favours heads).

    Weighted: the heavy side lands down. Shaved: the shaved side lands up.
    """
    kind = effect_type(effect)
    if kind == CoinEffectType.WEIGHTED:
        return -effect.bias_strength if on_heads_face else effect.bias_strength
    if kind == CoinEffectType.SHAVED:
        return effect.bias_strength if on_heads_face else -effect.bias_strength
    return 0.0


def streak_boost(heads_effect, tails_effect, last_result: Optional[str]) -> float:
    """
    Push towards repeating the last result.

    Only when exactly one face is a combo and the other face has no effect
    at all; any effect on the opposite face, even one a combo cannot
    enhance, switches the boost off.
    """
    pair = _single_combo(heads_effect, tails_effect)
    if pair is None or not last_result:
        return 0.0

    combo, opposite = pair
    if effect_type(opposite) != CoinEffectType.NONE:
        return 0.0

    if combo.combo_type == ComboType.ADDITIVE:
        magnitude = combo.combo_multiplier
    else:
        magnitude = 0.5 * (combo.combo_multiplier - 1)

    last = last_result.strip().lower()
    if last == "heads":
        return magnitude
    if last == "tails":
        return -magnitude
    return 0.0


def heads_probability(heads_effect=None, tails_effect=None, last_result: Optional[str] = None) -> float:
    """Heads probability in [0.1, 0.9] for a flip that no Always* effect decides."""
    heads_out, tails_out = enhanced_effects(heads_effect, tails_effect)
    probability = (
        BASE_HEADS_PROBABILITY
        + face_bias(heads_out, on_heads_face=True)
        + face_bias(tails_out, on_heads_face=False)
        + streak_boost(heads_effect, tails_effect, last_result)
    )
    return _clamp(probability, PROBABILITY_FLOOR, PROBABILITY_CEILING, BASE_HEADS_PROBABILITY)


def resolve_flip(
    rng_draw: float,
    heads_effect=None,
    tails_effect=None,
    last_result: Optional[str] = None,
) -> FlipResolution:
    """
    Decide a flip from one uniform draw in [0, 1).

    Args:
        rng_draw: Uniform random draw
        heads_effect: Effect of the coin on the heads face (or None)
        tails_effect: Effect of the coin on the tails face (or None)
        last_result: "heads", "tails" or empty before the first flip

    Returns:
        FlipResolution with the side and the probability used
    """
    always_heads = _is(heads_effect, CoinEffectType.ALWAYS_HEADS) or _is(
        tails_effect, CoinEffectType.ALWAYS_HEADS
    )
    always_tails = _is(heads_effect, CoinEffectType.ALWAYS_TAILS) or _is(
        tails_effect, CoinEffectType.ALWAYS_TAILS
    )

    # AlwaysHeads against AlwaysTails cancels out into a normal flip
    if always_heads and not always_tails:
        return FlipResolution(landed_heads=True, heads_probability=1.0, forced=True)
    if always_tails and not always_heads:
        return FlipResolution(landed_heads=False, heads_probability=0.0, forced=True)

    probability = heads_probability(heads_effect, tails_effect, last_result)
    return FlipResolution(landed_heads=rng_draw < probability, heads_probability=probability)


# ==================== Streak, Luck and Auto-click ====================

def apply_combo_streak_bonus(streak: int, heads_effect=None, tails_effect=None) -> int:
    """
    Streak counter after the combo bonus.

    Applies when exactly one face is a combo and the opposite face has no
    effect a combo could enhance (Weighted, Shaved or AutoClick).
    """
    pair = _single_combo(heads_effect, tails_effect)
    if pair is None:
        return streak

    combo, opposite = pair
    if effect_type(opposite) in ENHANCEABLE_EFFECTS:
        return streak

    if combo.combo_type == ComboType.ADDITIVE:
        bonus = combo.combo_multiplier * 100
        return streak + int(round(bonus)) if not math.isnan(bonus) else streak

    boosted = streak * combo.combo_multiplier
    if math.isnan(boosted) or math.isinf(boosted):
        return streak
    return max(0, int(round(boosted)))


def luck_chance_multiplier(heads_effect=None, tails_effect=None, base: float = 1.0) -> float:
    """Random-unlock chance multiplier after both faces' Luck effects."""
    multiplier = base
    for effect in (heads_effect, tails_effect):
        if not _is(effect, CoinEffectType.LUCK):
            continue
        if effect.luck_modifier_type == ComboType.ADDITIVE:
            multiplier += effect.luck_modifier
        else:
            multiplier *= effect.luck_modifier

    if math.isnan(multiplier):
        return base
    return max(0.0, multiplier)


def auto_click_interval(heads_effect=None, tails_effect=None) -> Optional[int]:
    """Fastest combo-enhanced auto-click interval in ms, or None without AutoClick."""
    intervals = [
        effect.auto_click_interval
        for effect in enhanced_effects(heads_effect, tails_effect)
        if _is(effect, CoinEffectType.AUTO_CLICK)
    ]
    if not intervals:
        return None
    return max(AUTO_CLICK_FLOOR_MS, min(intervals))
