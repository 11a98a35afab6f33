"""
Coin catalog loader.
Loads coin definitions from coins.json and checks them the way the
catalog authoring tool does, logging every problem found.
"""

from pathlib import Path
from typing import Iterable, List, Optional

import orjson
from pydantic import ValidationError

from coinflip_game.config import settings
from coinflip_game.core.logger import get_logger
from coinflip_game.core.engine.catalog import CoinCatalog
from coinflip_game.core.engine.models import (
    CharacteristicFilter,
    CoinDefinition,
    SideRequirement,
    UnlockConditionType,
    condition_type,
)

logger = get_logger("catalog")

_COUNTED_TYPES = (
    UnlockConditionType.TOTAL_FLIPS,
    UnlockConditionType.HEADS_FLIPS,
    UnlockConditionType.TAILS_FLIPS,
    UnlockConditionType.STREAK,
    UnlockConditionType.LAND_ON_COIN,
)


def _validate_main_condition(condition) -> List[str]:
    errors = []
    kind = condition_type(condition)

    if kind in (
        UnlockConditionType.TOTAL_FLIPS,
        UnlockConditionType.HEADS_FLIPS,
        UnlockConditionType.TAILS_FLIPS,
        UnlockConditionType.STREAK,
    ):
        if condition.required_count <= 0:
            errors.append(f"Required count must be greater than 0 for {kind.value}.")

    elif kind == UnlockConditionType.LAND_ON_COIN:
        if not condition.required_coin_path:
            errors.append("Required coin path must be set for LandOnCoin type.")
        if condition.required_count <= 0:
            errors.append("Required count must be greater than 0.")

    elif kind == UnlockConditionType.RANDOM_CHANCE:
        if not 0 < condition.unlock_chance <= 1:
            errors.append("Unlock chance must be between 0 and 1 (0% to 100%).")
        if condition.requires_active_coin and not condition.active_coin_path:
            errors.append("Active coin path must be set when RequiresActiveCoin is true.")

    elif kind == UnlockConditionType.LAND_ON_MULTIPLE_COINS:
        if condition.required_count <= 0:
            errors.append("Required count must be greater than 0.")
        if not condition.use_dynamic_coin_list and not condition.required_coin_paths:
            errors.append("At least one required coin must be specified, or enable UseDynamicCoinList.")

    elif kind == UnlockConditionType.LAND_ON_COINS_WITH_CHARACTERISTICS:
        if condition.consecutive_count <= 0:
            errors.append("Consecutive count must be greater than 0.")

        filter_kind = condition.characteristic_filter
        if filter_kind == CharacteristicFilter.SPECIFIC_COINS and not condition.required_coin_paths:
            errors.append("At least one coin must be specified for SpecificCoins filter.")
        elif filter_kind == CharacteristicFilter.UNLOCK_CONDITION_TYPE and condition.filter_unlock_condition_type is None:
            errors.append("Unlock condition type must be selected for UnlockConditionType filter.")
        elif filter_kind == CharacteristicFilter.EFFECT_TYPE and condition.filter_effect_type is None:
            errors.append("Effect type must be selected for EffectType filter.")
        elif filter_kind in (
            CharacteristicFilter.PREREQUISITE_COUNT_EQUALS,
            CharacteristicFilter.PREREQUISITE_COUNT_GREATER_THAN,
            CharacteristicFilter.PREREQUISITE_COUNT_LESS_THAN,
        ) and condition.filter_prerequisite_count < 0:
            errors.append("Prerequisite count cannot be negative.")

        if condition.side_requirement == SideRequirement.HEADS_AND_TAILS and len(condition.required_coin_paths) != 2:
            errors.append("HeadsAndTails side requirement requires exactly 2 coins in RequiredCoinPaths.")
        if condition.side_requirement == SideRequirement.ANY_FROM_LIST and len(condition.required_coin_paths) < 2:
            errors.append("AnyFromList side requirement requires at least 2 coins in RequiredCoinPaths.")

    return errors


def validate_coin(coin: CoinDefinition, known_paths: Optional[Iterable[str]] = None) -> List[str]:
    """
    Check one coin definition for authoring mistakes.

    Args:
        coin: Coin to check
        known_paths: Catalog paths, used to report references to missing coins

    Returns:
        List of problems (empty when the coin is valid)
    """
    condition = coin.unlock_condition
    if condition is None:
        return []

    errors = _validate_main_condition(condition)
    known = set(known_paths) if known_paths is not None else None

    for index, prerequisite in enumerate(condition.prerequisites, start=1):
        kind = condition_type(prerequisite)
        if kind == UnlockConditionType.LAND_ON_COIN:
            if not prerequisite.required_coin_path:
                errors.append(f"Prerequisite {index}: Required coin path must be set for LandOnCoin type.")
            elif prerequisite.required_coin_path == coin.path:
                errors.append(f"Prerequisite {index}: Coin cannot require itself to unlock.")
        if kind in _COUNTED_TYPES and prerequisite.required_count <= 0:
            errors.append(f"Prerequisite {index}: Required count must be greater than 0.")
        if prerequisite.prerequisites:
            errors.append(f"Prerequisite {index}: Nested prerequisites are ignored.")

    if known is not None:
        for path in _referenced_paths(condition):
            if path not in known:
                errors.append(f"References unknown coin: {path}")

    return errors


def _referenced_paths(condition) -> List[str]:
    paths = []
    for item in (condition, *condition.prerequisites):
        kind = condition_type(item)
        if kind == UnlockConditionType.LAND_ON_COIN and item.required_coin_path:
            paths.append(item.required_coin_path)
        elif kind == UnlockConditionType.LAND_ON_MULTIPLE_COINS:
            paths.extend(item.required_coin_paths)
        elif kind == UnlockConditionType.RANDOM_CHANCE and item.active_coin_path:
            paths.append(item.active_coin_path)
    return paths


def parse_coins(entries: list) -> List[CoinDefinition]:
    """Validate raw catalog entries, skipping (and logging) the ones that do not parse."""
    coins = []
    for index, entry in enumerate(entries):
        try:
            coins.append(CoinDefinition.model_validate(entry))
        except ValidationError as e:
            path = entry.get("path", f"#{index}") if isinstance(entry, dict) else f"#{index}"
            logger.error(f"Skipping invalid coin {path}: {e.error_count()} error(s)\n{e}")
    return coins


def build_catalog(coins: Iterable[CoinDefinition]) -> CoinCatalog:
    """Create the catalog and log authoring problems. Problem coins stay loaded."""
    catalog = CoinCatalog(coins)
    known = catalog.paths
    for coin in catalog:
        for problem in validate_coin(coin, known):
            logger.warning(f"{coin.path}: {problem}")
    return catalog


def load_catalog(path: Optional[Path] = None) -> CoinCatalog:
    """
    Load the coin catalog from a JSON file.

    The file holds either a list of coins or an object with a "coins" list.
    A missing, unreadable or malformed file yields an empty catalog.
    """
    if path is None:
        path = settings.paths.get_catalog_path()

    try:
        with open(path, "rb") as f:
            data = orjson.loads(f.read())
    except FileNotFoundError:
        logger.warning(f"Coin catalog not found at {path}, starting with no coins")
        return CoinCatalog()
    except OSError as e:
        logger.error(f"Could not read coin catalog {path}: {e}")
        return CoinCatalog()
    except orjson.JSONDecodeError as e:
        logger.error(f"Invalid JSON in coin catalog {path}: {e}")
        return CoinCatalog()

    entries = data.get("coins", []) if isinstance(data, dict) else data
    if not isinstance(entries, list):
        logger.error(f"Coin catalog {path} does not contain a list of coins")
        return CoinCatalog()

    catalog = build_catalog(parse_coins(entries))
    logger.info(f"Loaded {len(catalog)} coins from {Path(path).name}")
    return catalog
