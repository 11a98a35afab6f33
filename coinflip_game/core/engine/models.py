"""
Coin catalog data model.

Unlock conditions and coin effects are discriminated unions keyed by their
``type`` field, so each variant only carries the fields it actually uses.
Catalog JSON uses camelCase keys (``requiredCount``, ``biasStrength``...).
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Rarity(str, Enum):
    COMMON = "Common"
    UNCOMMON = "Uncommon"
    RARE = "Rare"
    LEGENDARY = "Legendary"


class UnlockConditionType(str, Enum):
    NONE = "None"
    TOTAL_FLIPS = "TotalFlips"
    HEADS_FLIPS = "HeadsFlips"
    TAILS_FLIPS = "TailsFlips"
    STREAK = "Streak"
    LAND_ON_COIN = "LandOnCoin"
    RANDOM_CHANCE = "RandomChance"
    LAND_ON_MULTIPLE_COINS = "LandOnMultipleCoins"
    LAND_ON_COINS_WITH_CHARACTERISTICS = "LandOnCoinsWithCharacteristics"


class CoinEffectType(str, Enum):
    NONE = "None"
    AUTO_CLICK = "AutoClick"
    WEIGHTED = "Weighted"
    SHAVED = "Shaved"
    COMBO = "Combo"
    LUCK = "Luck"
    ALWAYS_HEADS = "AlwaysHeads"
    ALWAYS_TAILS = "AlwaysTails"


class ComboType(str, Enum):
    ADDITIVE = "Additive"
    MULTIPLICATIVE = "Multiplicative"


class StreakSide(str, Enum):
    HEADS = "Heads"
    TAILS = "Tails"


class CharacteristicFilter(str, Enum):
    SPECIFIC_COINS = "SpecificCoins"
    UNLOCK_CONDITION_TYPE = "UnlockConditionType"
    EFFECT_TYPE = "EffectType"
    HAS_ANY_EFFECT = "HasAnyEffect"
    HAS_ANY_UNLOCK_CONDITION = "HasAnyUnlockCondition"
    PREREQUISITE_COUNT_EQUALS = "PrerequisiteCountEquals"
    PREREQUISITE_COUNT_GREATER_THAN = "PrerequisiteCountGreaterThan"
    PREREQUISITE_COUNT_LESS_THAN = "PrerequisiteCountLessThan"


class SideRequirement(str, Enum):
    EITHER = "Either"
    BOTH = "Both"
    HEADS_ONLY = "HeadsOnly"
    TAILS_ONLY = "TailsOnly"
    HEADS_AND_TAILS = "HeadsAndTails"
    ANY_FROM_LIST = "AnyFromList"


class CatalogModel(BaseModel):
    """Immutable catalog record with camelCase JSON keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


# ==================== Unlock Conditions ====================

class ConditionBase(CatalogModel):
    description: str = ""
    flavor_text: str = ""
    rarity: Rarity = Rarity.COMMON
    # Evaluated one level deep: a prerequisite's own prerequisites are ignored
    prerequisites: Tuple["UnlockCondition", ...] = ()


class NoneCondition(ConditionBase):
    type: Literal["None"] = "None"


class TotalFlipsCondition(ConditionBase):
    type: Literal["TotalFlips"] = "TotalFlips"
    required_count: int = 0


class HeadsFlipsCondition(ConditionBase):
    type: Literal["HeadsFlips"] = "HeadsFlips"
    required_count: int = 0


class TailsFlipsCondition(ConditionBase):
    type: Literal["TailsFlips"] = "TailsFlips"
    required_count: int = 0


class StreakCondition(ConditionBase):
    type: Literal["Streak"] = "Streak"
    required_count: int = 0
    # None means a streak on either side counts
    streak_side: Optional[StreakSide] = None


class LandOnCoinCondition(ConditionBase):
    type: Literal["LandOnCoin"] = "LandOnCoin"
    required_coin_path: Optional[str] = None
    required_count: int = 0


class LandOnMultipleCoinsCondition(ConditionBase):
    type: Literal["LandOnMultipleCoins"] = "LandOnMultipleCoins"
    required_coin_paths: Tuple[str, ...] = ()
    required_count: int = 0
    # Replaced at catalog load by every unlockable coin except the owner
    use_dynamic_coin_list: bool = False


class RandomChanceCondition(ConditionBase):
    type: Literal["RandomChance"] = "RandomChance"
    unlock_chance: float = 0.0
    requires_active_coin: bool = False
    active_coin_path: Optional[str] = None


class CharacteristicsCondition(ConditionBase):
    type: Literal["LandOnCoinsWithCharacteristics"] = "LandOnCoinsWithCharacteristics"
    characteristic_filter: CharacteristicFilter = CharacteristicFilter.SPECIFIC_COINS
    required_coin_paths: Tuple[str, ...] = ()
    filter_unlock_condition_type: Optional[UnlockConditionType] = None
    filter_effect_type: Optional[CoinEffectType] = None
    filter_prerequisite_count: int = 0
    side_requirement: SideRequirement = SideRequirement.EITHER
    consecutive_count: int = 0


UnlockCondition = Annotated[
    Union[
        NoneCondition,
        TotalFlipsCondition,
        HeadsFlipsCondition,
        TailsFlipsCondition,
        StreakCondition,
        LandOnCoinCondition,
        LandOnMultipleCoinsCondition,
        RandomChanceCondition,
        CharacteristicsCondition,
    ],
    Field(discriminator="type"),
]

for _model in (
    ConditionBase,
    NoneCondition,
    TotalFlipsCondition,
    HeadsFlipsCondition,
    TailsFlipsCondition,
    StreakCondition,
    LandOnCoinCondition,
    LandOnMultipleCoinsCondition,
    RandomChanceCondition,
    CharacteristicsCondition,
):
    _model.model_rebuild()


# ==================== Coin Effects ====================

class EffectBase(CatalogModel):
    description: str = ""


class NoEffect(EffectBase):
    type: Literal["None"] = "None"


class AutoClickEffect(EffectBase):
    type: Literal["AutoClick"] = "AutoClick"
    auto_click_interval: int = 1000


class WeightedEffect(EffectBase):
    """Heavy side lands down, so the opposite face shows more often."""
    type: Literal["Weighted"] = "Weighted"
    bias_strength: float = 0.1


class ShavedEffect(EffectBase):
    """Shaved side lands up more often."""
    type: Literal["Shaved"] = "Shaved"
    bias_strength: float = 0.1


class ComboEffect(EffectBase):
    type: Literal["Combo"] = "Combo"
    combo_type: ComboType = ComboType.ADDITIVE
    combo_multiplier: float = 0.05


class LuckEffect(EffectBase):
    type: Literal["Luck"] = "Luck"
    luck_modifier: float = 0.05
    luck_modifier_type: ComboType = ComboType.ADDITIVE


class AlwaysHeadsEffect(EffectBase):
    type: Literal["AlwaysHeads"] = "AlwaysHeads"


class AlwaysTailsEffect(EffectBase):
    type: Literal["AlwaysTails"] = "AlwaysTails"


CoinEffect = Annotated[
    Union[
        NoEffect,
        AutoClickEffect,
        WeightedEffect,
        ShavedEffect,
        ComboEffect,
        LuckEffect,
        AlwaysHeadsEffect,
        AlwaysTailsEffect,
    ],
    Field(discriminator="type"),
]


# ==================== Coin Definition ====================

class CoinDefinition(CatalogModel):
    path: str
    name: str = ""
    category: str = ""
    rarity: Optional[Rarity] = None
    unlock_condition: Optional[UnlockCondition] = None
    effect: Optional[CoinEffect] = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        stem = self.path.rsplit("/", 1)[-1]
        return stem.rsplit(".", 1)[0] if "." in stem else stem

    @property
    def effective_rarity(self) -> Rarity:
        if self.rarity is not None:
            return self.rarity
        if self.unlock_condition is not None:
            return self.unlock_condition.rarity
        return Rarity.COMMON

    @property
    def is_configured(self) -> bool:
        """Coins with a condition or an effect take part in random face selection."""
        return self.unlock_condition is not None or self.effect is not None


def condition_type(condition) -> UnlockConditionType:
    """Type of an optional condition; a missing condition counts as None."""
    if condition is None:
        return UnlockConditionType.NONE
    return UnlockConditionType(condition.type)


def effect_type(effect) -> CoinEffectType:
    """Type of an optional effect; a missing effect counts as None."""
    if effect is None:
        return CoinEffectType.NONE
    return CoinEffectType(effect.type)
