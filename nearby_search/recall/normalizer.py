import hashlib
from typing import Any, Dict, Optional

from geopy.distance import great_circle

from nearby_search.core.config import settings
from nearby_search.core.errors import ProviderPayloadError
from nearby_search.models import (
    Address,
    Contact,
    Diet,
    Facilities,
    POIRecord,
    SearchOrigin,
)

EARTH_RADIUS_KM = 6371


def distance_km(origin: SearchOrigin, lat: float, lng: float) -> float:
    """Great-circle distance from the search origin, shared by every provider and tier."""
    return great_circle(
        (origin.latitude, origin.longitude), (lat, lng), radius=EARTH_RADIUS_KM
    ).km


def normalize_name(name: str) -> str:
    return " ".join(name.lower().split())


def content_key(name: str, lat: float, lng: float) -> tuple:
    precision = settings.DEDUP_PRECISION
    return (normalize_name(name), round(lat, precision), round(lng, precision))


def derive_id(name: str, lat: float, lng: float) -> str:
    raw = "|".join(str(part) for part in content_key(name, lat, lng))
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


def _yes(value: Optional[str], *accepted: str) -> bool:
    return value in (accepted or ("yes",))


def _mapping(value: Any) -> Dict[str, Any]:
    # Providers occasionally send null or a scalar where an object belongs.
    return value if isinstance(value, dict) else {}


def _coordinates(lat: Any, lng: Any) -> tuple:
    if lat is None or lng is None:
        raise ProviderPayloadError("feature has no coordinates")
    try:
        return float(lat), float(lng)
    except (TypeError, ValueError) as e:
        raise ProviderPayloadError(f"bad coordinates {lat!r}, {lng!r}") from e


def _require_mapping(feature: Any) -> Dict[str, Any]:
    if not isinstance(feature, dict):
        raise ProviderPayloadError(f"feature is not an object: {feature!r}")
    return feature


# --- Geoapify (halal food) ---


def _raw_tags(props: Dict[str, Any]) -> Dict[str, Any]:
    return _mapping(_mapping(props.get("datasource")).get("raw"))


def fallback_food_name(props: Dict[str, Any]) -> str:
    raw = _raw_tags(props)
    cuisine = _mapping(props.get("catering")).get("cuisine") or raw.get("cuisine")
    if isinstance(cuisine, str) and cuisine:
        return f"{cuisine[0].upper()}{cuisine[1:]} Restaurant"
    if props.get("street"):
        return f"Restaurant on {props['street']}"
    if props.get("neighbourhood"):
        return f"Restaurant in {props['neighbourhood']}"
    if props.get("city"):
        return f"Restaurant in {props['city']}"
    return "Halal Restaurant"


def normalize_geoapify_feature(feature: Dict[str, Any], origin: SearchOrigin) -> POIRecord:
    feature = _require_mapping(feature)
    props = _mapping(feature.get("properties"))
    lat, lng = props.get("lat"), props.get("lon")
    if lat is None or lng is None:
        # Fall back to the GeoJSON geometry ([lon, lat]).
        coords = _mapping(feature.get("geometry")).get("coordinates")
        if not isinstance(coords, (list, tuple)) or len(coords) < 2:
            raise ProviderPayloadError(f"feature has no usable coordinates: {coords!r}")
        lng, lat = coords[0], coords[1]
    lat, lng = _coordinates(lat, lng)

    raw = _raw_tags(props)
    catering = _mapping(props.get("catering"))
    name = props.get("name") or props.get("address_line1") or fallback_food_name(props)

    street = props.get("street")
    if street and props.get("housenumber"):
        street = f"{props['housenumber']} {street}"

    diet = None
    if isinstance(catering.get("diet"), dict):
        diet = Diet(halal=catering["diet"].get("halal"))
    elif raw.get("diet:halal"):
        diet = Diet(halal=_yes(raw["diet:halal"], "yes", "only"))

    contact = None
    if isinstance(props.get("contact"), dict):
        contact = Contact(**props["contact"])
    elif raw.get("phone") or raw.get("website"):
        contact = Contact(phone=raw.get("phone"), website=raw.get("website"))

    facilities = None
    if isinstance(props.get("facilities"), dict):
        facilities = Facilities(**props["facilities"])
    elif any(raw.get(key) for key in ("takeaway", "delivery", "wheelchair")):
        facilities = Facilities(
            takeaway=_yes(raw["takeaway"], "yes", "only") if raw.get("takeaway") else None,
            delivery=_yes(raw["delivery"]) if raw.get("delivery") else None,
            wheelchair=_yes(raw["wheelchair"]) if raw.get("wheelchair") else None,
        )

    return POIRecord(
        id=str(props.get("place_id") or derive_id(name, lat, lng)),
        name=name,
        lat=lat,
        lng=lng,
        distance_km=distance_km(origin, lat, lng),
        categories=list(props.get("categories") or []),
        cuisine=catering.get("cuisine") or raw.get("cuisine"),
        diet=diet,
        address=Address(
            street=street,
            city=props.get("city"),
            state=props.get("state"),
            postcode=props.get("postcode"),
            country=props.get("country"),
            formatted=props.get("formatted"),
        ),
        contact=contact,
        opening_hours=props.get("opening_hours") or raw.get("opening_hours"),
        facilities=facilities,
    )


# --- Overpass (mosques) ---


def fallback_mosque_name(tags: Dict[str, str]) -> str:
    street = tags.get("addr:street")
    if street:
        if tags.get("addr:housenumber"):
            return f"Mosque near {tags['addr:housenumber']} {street}"
        return f"Mosque near {street}"
    if tags.get("addr:city"):
        return f"Mosque in {tags['addr:city']}"
    return "Unnamed Mosque"


def normalize_overpass_element(element: Dict[str, Any], origin: SearchOrigin) -> POIRecord:
    element = _require_mapping(element)
    center = _mapping(element.get("center"))
    lat, lng = _coordinates(
        element.get("lat", center.get("lat")), element.get("lon", center.get("lon"))
    )
    tags = _mapping(element.get("tags"))
    name = tags.get("name") or fallback_mosque_name(tags)

    street = tags.get("addr:street")
    if street and tags.get("addr:housenumber"):
        street = f"{tags['addr:housenumber']} {street}"

    element_id = element.get("id")
    record_id = (
        f"{element.get('type', 'node')}/{element_id}"
        if element_id is not None
        else derive_id(name, lat, lng)
    )

    contact = None
    if tags.get("phone") or tags.get("website"):
        contact = Contact(phone=tags.get("phone"), website=tags.get("website"))

    return POIRecord(
        id=record_id,
        name=name,
        lat=lat,
        lng=lng,
        distance_km=distance_km(origin, lat, lng),
        categories=[f"amenity.{tags['amenity']}"] if tags.get("amenity") else [],
        address=Address(
            street=street,
            city=tags.get("addr:city"),
            state=tags.get("addr:state"),
            postcode=tags.get("addr:postcode"),
            country=tags.get("addr:country"),
        ),
        contact=contact,
        opening_hours=tags.get("opening_hours"),
        facilities=Facilities(wheelchair=_yes(tags["wheelchair"])) if tags.get("wheelchair") else None,
        denomination=tags.get("denomination"),
    )
