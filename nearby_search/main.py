import logging
import math
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from nearby_search.core.config import settings
from nearby_search.core.errors import ConfigurationError, ValidationError
from nearby_search.core.log import setup_logging
from nearby_search.models import (
    FoodSearchResponse,
    MosqueSearchResponse,
    SearchLocation,
    SearchOrigin,
)
from nearby_search.recall.escalator import StrategyEscalator, food_search, mosque_search

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if not settings.GEOAPIFY_API_KEY:
        logger.error("GEOAPIFY_API_KEY is not set; /api/food will answer 500 until it is configured.")
    yield


app = FastAPI(title="Nearby Places Search Service", version="1.0", lifespan=lifespan)


@app.exception_handler(ValidationError)
async def validation_error_handler(_request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(_request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=500, content={"error": str(exc)})


def _parse_float(value: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    return number


def parse_search_params(
    latitude: Optional[str], longitude: Optional[str], radius: Optional[str]
) -> Tuple[SearchOrigin, float]:
    if not latitude or not longitude:
        raise ValidationError("Missing required parameters: latitude, longitude")

    lat = _parse_float(latitude)
    lng = _parse_float(longitude)
    radius_meters = _parse_float(radius) if radius else settings.DEFAULT_RADIUS_METERS

    if math.isnan(lat) or lat < -90 or lat > 90:
        raise ValidationError("Invalid latitude. Must be between -90 and 90")
    if math.isnan(lng) or lng < -180 or lng > 180:
        raise ValidationError("Invalid longitude. Must be between -180 and 180")
    if (
        math.isnan(radius_meters)
        or radius_meters <= 0
        or radius_meters > settings.MAX_RADIUS_METERS
    ):
        raise ValidationError(
            f"Invalid radius. Must be between 0 and {settings.MAX_RADIUS_METERS:g} meters"
        )

    return SearchOrigin(latitude=lat, longitude=lng), radius_meters


async def _run_search(
    engine: StrategyEscalator,
    latitude: Optional[str],
    longitude: Optional[str],
    radius: Optional[str],
) -> dict:
    origin, radius_meters = parse_search_params(latitude, longitude, radius)
    outcome = await engine.search(origin, radius_meters)
    return {
        engine.provider.result_key: outcome.results,
        "count": outcome.count,
        "search_location": SearchLocation(lat=origin.latitude, lng=origin.longitude),
        "radius_meters": int(radius_meters),
        "search_strategies": outcome.strategy_summary(),
        "message": outcome.message,
    }


@app.get(
    "/api/food",
    response_model=FoodSearchResponse,
    response_model_exclude_none=True,
)
async def search_food(
    latitude: Optional[str] = None,
    longitude: Optional[str] = None,
    radius: Optional[str] = None,
):
    if not settings.GEOAPIFY_API_KEY:
        raise ConfigurationError("Geoapify API key not configured")
    try:
        return await _run_search(food_search, latitude, longitude, radius)
    except (ValidationError, ConfigurationError):
        raise
    except Exception as e:
        logger.exception("Error in /api/food")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch halal food places", "details": str(e)},
        )


@app.get(
    "/api/mosques",
    response_model=MosqueSearchResponse,
    response_model_exclude_none=True,
)
async def search_mosques(
    latitude: Optional[str] = None,
    longitude: Optional[str] = None,
    radius: Optional[str] = None,
):
    try:
        return await _run_search(mosque_search, latitude, longitude, radius)
    except (ValidationError, ConfigurationError):
        raise
    except Exception as e:
        logger.exception("Error in /api/mosques")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch mosques", "details": str(e)},
        )


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "provider": settings.GEOAPIFY_URL,
        "geoapifyConfigured": bool(settings.GEOAPIFY_API_KEY),
    }


if __name__ == "__main__":
    uvicorn.run(app, host=settings.SERVICE_HOST, port=settings.APP_PORT)
