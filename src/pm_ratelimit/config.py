"""Default request budgets per endpoint group (requests per window)."""

DEFAULT_WINDOW_SECONDS = 60
FALLBACK_LIMIT = 100

ENDPOINT_LIMITS: dict[str, int] = {
    "health": 1000,
    "prompts": 100,
    "trades": 20,
    "breeding": 10,
}


def limit_for(endpoint: str) -> int:
    return ENDPOINT_LIMITS.get(endpoint, FALLBACK_LIMIT)
