import logging
from typing import Callable, List, Optional

import aiohttp

from nearby_search.core.config import settings
from nearby_search.core.errors import ProviderError, ProviderTerminalError
from nearby_search.models import POIRecord, SearchOrigin, SearchOutcome
from nearby_search.ranking.merger import ResultMerger
from nearby_search.ranking.ranker import DistanceRanker, ranker as default_ranker
from nearby_search.recall.fetcher import RetryingFetcher, RetryPolicy
from nearby_search.recall.providers import (
    GeoapifyFoodProvider,
    OverpassMosqueProvider,
    PlaceProvider,
    TierDescriptor,
)
from nearby_search.recall.timeouts import timeout_for_radius

logger = logging.getLogger(__name__)


class StrategyEscalator:
    """
    Runs a provider's strategy tiers one after another, narrowest first.

    Each tier costs one unit of provider quota, so the next tier only runs
    while the merged result count is still below ``min_results``. A tier that
    fails contributes nothing; it never fails the search.
    """

    def __init__(
        self,
        provider: PlaceProvider,
        fetcher: Optional[RetryingFetcher] = None,
        ranker: Optional[DistanceRanker] = None,
        min_results: Optional[int] = None,
        policy: Optional[RetryPolicy] = None,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.provider = provider
        self.fetcher = fetcher or RetryingFetcher()
        self.ranker = ranker or default_ranker
        self.min_results = settings.MIN_RESULTS if min_results is None else min_results
        self.policy = policy or RetryPolicy()
        self.session_factory = session_factory

    async def search(
        self,
        origin: SearchOrigin,
        radius_meters: float,
        min_results: Optional[int] = None,
    ) -> SearchOutcome:
        if min_results is None:
            min_results = self.min_results
        policy = self.policy.with_timeout(timeout_for_radius(radius_meters))

        merger = ResultMerger()
        tier_counts = {d.tier: 0 for d in self.provider.tiers}

        async with self.session_factory() as session:
            for descriptor in self.provider.tiers:
                try:
                    records = await self._run_tier(
                        session, descriptor, origin, radius_meters, policy
                    )
                except ProviderError as e:
                    logger.error(f"{descriptor.tier.value} search failed: {e}")
                except Exception:
                    logger.exception(f"{descriptor.tier.value} search failed unexpectedly")
                else:
                    tier_counts[descriptor.tier] = len(records)
                    accepted = merger.add(records)
                    logger.info(
                        f"{descriptor.tier.value} search returned {len(records)} places "
                        f"({accepted} new, {len(merger)} merged)"
                    )

                if len(merger) >= min_results:
                    break

        results = self.ranker.rank(merger.records)
        message = None if results else self.provider.empty_message
        return SearchOutcome(results=results, tier_counts=tier_counts, message=message)

    async def _run_tier(
        self,
        session: aiohttp.ClientSession,
        descriptor: TierDescriptor,
        origin: SearchOrigin,
        radius_meters: float,
        policy: RetryPolicy,
    ) -> List[POIRecord]:
        request = self.provider.build_request(descriptor, origin, radius_meters)
        response = await self.fetcher.fetch(session, request, policy)
        if not response.ok:
            raise ProviderTerminalError(
                f"provider rejected request with status {response.status}: "
                f"{str(response.payload)[:200]}",
                status=response.status,
            )

        records = []
        for feature in self.provider.features(response.payload):
            try:
                records.append(self.provider.normalize(feature, origin))
            except Exception as e:
                logger.warning(f"Skipping unreadable {descriptor.tier.value} feature: {e}")
        return records


food_search = StrategyEscalator(GeoapifyFoodProvider())
mosque_search = StrategyEscalator(OverpassMosqueProvider())
