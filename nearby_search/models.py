from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StrategyTier(str, Enum):
    # Declaration order is escalation order: narrowest first.
    STRICT = "strict"
    CATEGORY = "category"
    CUISINE = "cuisine"


class SearchOrigin(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Address(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    formatted: Optional[str] = None


class Diet(BaseModel):
    halal: Optional[bool] = None


class Contact(BaseModel):
    phone: Optional[str] = None
    website: Optional[str] = None


class Facilities(BaseModel):
    takeaway: Optional[bool] = None
    delivery: Optional[bool] = None
    wheelchair: Optional[bool] = None


class POIRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    lat: float
    lng: float
    distance_km: float = Field(ge=0, alias="distanceKm")
    categories: List[str] = Field(default_factory=list)
    cuisine: Optional[str] = None
    diet: Optional[Diet] = None
    address: Address = Field(default_factory=Address)
    contact: Optional[Contact] = None
    opening_hours: Optional[str] = Field(default=None, alias="openingHours")
    facilities: Optional[Facilities] = None
    denomination: Optional[str] = None


@dataclass
class SearchOutcome:
    results: List[POIRecord]
    tier_counts: Dict[StrategyTier, int] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def count(self) -> int:
        return len(self.results)

    def strategy_summary(self) -> Dict[str, int]:
        summary = {tier.value: n for tier, n in self.tier_counts.items()}
        summary["merged"] = self.count
        return summary


class SearchLocation(BaseModel):
    lat: float
    lng: float


class _PlacesResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int
    search_location: SearchLocation = Field(alias="searchLocation")
    radius_meters: int = Field(alias="radiusMeters")
    search_strategies: Dict[str, int] = Field(alias="searchStrategies")
    message: Optional[str] = None


class FoodSearchResponse(_PlacesResponse):
    foods: List[POIRecord]


class MosqueSearchResponse(_PlacesResponse):
    mosques: List[POIRecord]
