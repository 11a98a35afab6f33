import sys
import os
import asyncio
import argparse

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from coinflip_game.core.catalog_loader import load_catalog
from coinflip_game.core.rng import SeededRNG, rng
from coinflip_game.core.session import GameSession
from coinflip_game.core.storage import MemoryProgressStore

async def simulate(flips: int, heads_path: str, tails_path: str, seed: int = None, random_faces: bool = False):
    """Runs a number of flips against the shipped catalog and prints when each coin unlocked."""
    catalog = load_catalog()
    if len(catalog) == 0:
        print("No coins in catalog.")
        return

    heads_path = heads_path or catalog.coins[0].path
    tails_path = tails_path or heads_path
    session = GameSession(
        catalog,
        store=MemoryProgressStore(),
        rng=SeededRNG(seed) if seed is not None else rng,
    )
    await session.load()

    for number in range(1, flips + 1):
        outcome = await session.flip(
            heads_path,
            tails_path,
            heads_random=random_faces,
            tails_random=random_faces,
        )
        for coin in outcome.newly_unlocked:
            print(f"[flip {number:>6}] unlocked {coin.display_name} ({coin.effective_rarity.value})")
        for coin in outcome.random_unlocked:
            print(f"[flip {number:>6}] lucky unlock {coin.display_name} ({coin.effective_rarity.value})")

    unlocked = session.unlocked_coins()
    print()
    print(f"Flips: {session.get_total_flips()} (heads {session.get_heads_flips()}, tails {session.get_tails_flips()})")
    print(f"Longest streak: {session.get_longest_streak()}")
    print(f"Unlocked {len(unlocked)}/{len(catalog)} coins")
    for coin in catalog:
        if not session.is_unlocked(coin.path):
            print(f"  locked: {coin.display_name:<20} {session.get_progress_description(coin.path)}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Simulate coin flips against the coin catalog")
    parser.add_argument("flips", type=int, nargs="?", default=1000, help="Number of flips to run")
    parser.add_argument("--heads", default=None, help="Coin path on the heads face")
    parser.add_argument("--tails", default=None, help="Coin path on the tails face")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a replayable run")
    parser.add_argument("--random-faces", action="store_true", help="Pick a weighted random unlocked coin for each face")
    args = parser.parse_args()

    asyncio.run(simulate(args.flips, args.heads, args.tails, args.seed, args.random_faces))
