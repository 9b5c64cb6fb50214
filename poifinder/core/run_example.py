from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from dotenv import load_dotenv

from poifinder.core.errors import AllSourcesFailed
from poifinder.providers.base import Coordinate


async def main():
    repo_root = Path(__file__).resolve().parents[2]
    load_dotenv(repo_root / ".env", override=False)

    # settings read the environment at import time, so import after load_dotenv
    from poifinder.core.config import Settings
    from poifinder.core.orchestrator import build_aggregator

    cfg = Settings()
    logging.basicConfig(level=cfg.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    # Paris, Île de la Cité
    origin = Coordinate(48.8530, 2.3499)

    async with build_aggregator(cfg) as aggregator:
        try:
            result = await aggregator.discover_pois(origin, radius_m=1500)
        except AllSourcesFailed as e:
            for failure in e.failures:
                print(f"  {failure.source.value}: {failure.error}")
            raise SystemExit(1)

        for f in result.failures:
            print(f"warning: {f.source.value} failed ({f.kind}): {f.error}")
        print(f"Got {len(result.pois)} POIs from {', '.join(sorted(s.value for s in result.sources_ok))}")
        for poi in result.pois[:20]:
            sources = "+".join(sorted(s.value for s in poi.sources))
            print(f"{poi.notability_score:3d}  {poi.distance_from_origin:7.0f}m  {poi.type.value:<18} {poi.name}  [{sources}]")

if __name__ == "__main__":
    asyncio.run(main())
