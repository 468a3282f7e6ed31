from nearby_search.core.config import settings


def timeout_for_radius(radius_meters: float) -> int:
    """
    Per-attempt provider timeout in milliseconds.

    Larger radii return more candidates and take the provider longer to answer,
    so every complete 5km step adds 5s on top of the 15s base, capped at 45s.
    """
    steps = int(max(radius_meters, 0) // settings.TIMEOUT_STEP_METERS)
    timeout_ms = settings.TIMEOUT_BASE_MS + steps * settings.TIMEOUT_STEP_MS
    return min(timeout_ms, settings.TIMEOUT_MAX_MS)
