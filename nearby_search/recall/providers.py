from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from nearby_search.core.config import settings
from nearby_search.core.errors import ProviderPayloadError
from nearby_search.models import POIRecord, SearchOrigin, StrategyTier
from nearby_search.recall.fetcher import ProviderRequest
from nearby_search.recall.normalizer import (
    normalize_geoapify_feature,
    normalize_overpass_element,
)

HALAL_CUISINE_CATEGORIES = ",".join(
    f"catering.restaurant.{cuisine}"
    for cuisine in ("pakistani", "turkish", "lebanese", "syrian", "arab", "kebab")
)


@dataclass(frozen=True)
class TierDescriptor:
    tier: StrategyTier
    categories: str = ""
    name: Optional[str] = None


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def result_limit(radius_meters: float) -> int:
    # Fewer results per call on wide searches keeps responses small and fast.
    if radius_meters > 10000:
        return 20
    if radius_meters > 5000:
        return 30
    return 50


class PlaceProvider:
    """Describes one upstream POI source: its tiers, how to query it and how to read it."""

    result_key: str = "places"
    empty_message: str = "No places found in this area."
    tiers: Tuple[TierDescriptor, ...] = ()

    def build_request(
        self, descriptor: TierDescriptor, origin: SearchOrigin, radius_meters: float
    ) -> ProviderRequest:
        raise NotImplementedError

    def features(self, payload: Any) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def normalize(self, feature: Dict[str, Any], origin: SearchOrigin) -> POIRecord:
        raise NotImplementedError


class GeoapifyFoodProvider(PlaceProvider):
    result_key = "foods"
    empty_message = (
        "No halal food places found in this area. "
        "Try increasing the search radius or changing location."
    )
    tiers = (
        TierDescriptor(
            StrategyTier.STRICT,
            categories="catering.restaurant,catering.fast_food",
            name="halal",
        ),
        TierDescriptor(StrategyTier.CATEGORY, categories="halal"),
        TierDescriptor(StrategyTier.CUISINE, categories=HALAL_CUISINE_CATEGORIES),
    )

    def __init__(self, api_key: Optional[str] = None, url: Optional[str] = None):
        self._api_key = api_key
        self.url = url or settings.GEOAPIFY_URL

    @property
    def api_key(self) -> str:
        return self._api_key if self._api_key is not None else settings.GEOAPIFY_API_KEY

    def build_request(self, descriptor, origin, radius_meters):
        lat, lng = _fmt(origin.latitude), _fmt(origin.longitude)
        params = {
            "categories": descriptor.categories,
            "filter": f"circle:{lng},{lat},{_fmt(radius_meters)}",
            "bias": f"proximity:{lng},{lat}",
            "limit": str(result_limit(radius_meters)),
            "apiKey": self.api_key,
        }
        if descriptor.name:
            params["name"] = descriptor.name
        return ProviderRequest(url=self.url, params=params)

    def features(self, payload):
        if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
            raise ProviderPayloadError("Geoapify response has no feature list")
        return payload["features"]

    def normalize(self, feature, origin):
        return normalize_geoapify_feature(feature, origin)


class OverpassMosqueProvider(PlaceProvider):
    result_key = "mosques"
    empty_message = (
        "No mosques found in this area. "
        "Try increasing the search radius or changing location."
    )
    tiers = (TierDescriptor(StrategyTier.STRICT),)

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.OVERPASS_URL

    @staticmethod
    def build_query(origin: SearchOrigin, radius_meters: float) -> str:
        return (
            '[out:json];node["amenity"="place_of_worship"]["religion"="muslim"]'
            f"(around:{_fmt(radius_meters)},{_fmt(origin.latitude)},{_fmt(origin.longitude)});out;"
        )

    def build_request(self, descriptor, origin, radius_meters):
        return ProviderRequest(
            url=self.url,
            method="POST",
            data={"data": self.build_query(origin, radius_meters)},
        )

    def features(self, payload):
        if not isinstance(payload, dict) or not isinstance(payload.get("elements"), list):
            raise ProviderPayloadError("Overpass response has no element list")
        return payload["elements"]

    def normalize(self, element, origin):
        return normalize_overpass_element(element, origin)
