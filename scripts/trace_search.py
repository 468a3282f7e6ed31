import argparse
import asyncio
import json
import os
import sys

# Add the project root directory to the python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from nearby_search.core.config import settings
from nearby_search.core.log import setup_logging
from nearby_search.models import SearchOrigin
from nearby_search.recall.escalator import food_search, mosque_search
from nearby_search.recall.timeouts import timeout_for_radius


# Setup logging to file and console
class Tee(object):
    def __init__(self, *files):
        self.files = files

    def write(self, obj):
        for f in self.files:
            f.write(obj)
            f.flush()

    def flush(self):
        for f in self.files:
            f.flush()


async def trace_search(kind: str, lat: float, lng: float, radius_meters: float):
    engine = food_search if kind == "food" else mosque_search
    origin = SearchOrigin(latitude=lat, longitude=lng)

    print(f"\n{'='*60}", flush=True)
    print(f"SEARCH: {kind} @ ({lat}, {lng}) radius={radius_meters:g}m", flush=True)
    print(f"{'='*60}", flush=True)
    print(f"Per-attempt timeout: {timeout_for_radius(radius_meters)}ms", flush=True)
    print(f"Tiers: {[d.tier.value for d in engine.provider.tiers]}", flush=True)

    outcome = await engine.search(origin, radius_meters)

    print("\n--- Tier Contributions ---", flush=True)
    print(json.dumps(outcome.strategy_summary(), indent=2), flush=True)

    if outcome.message:
        print(f"\n{outcome.message}", flush=True)

    print("\n--- Results (nearest first) ---", flush=True)
    for i, record in enumerate(outcome.results, 1):
        print(f"  {i:>2}. {record.name} ({record.distance_km:.2f} km) [{record.id}]", flush=True)


def main():
    parser = argparse.ArgumentParser(description="Trace one nearby-places search.")
    parser.add_argument("kind", choices=["food", "mosques"])
    parser.add_argument("lat", type=float)
    parser.add_argument("lng", type=float)
    parser.add_argument("--radius", type=float, default=settings.DEFAULT_RADIUS_METERS)
    args = parser.parse_args()

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    with open(settings.TRACE_LOG_PATH, "a") as f:
        sys.stdout = Tee(sys.__stdout__, f)
        setup_logging()
        asyncio.run(trace_search(args.kind, args.lat, args.lng, args.radius))


if __name__ == "__main__":
    main()
