BLOCKING_STATUS_CODES = frozenset({403, 429, 503})

CHALLENGE_MARKERS = (
    "challenge",
    "captcha",
    "cloudflare",
    "just a moment...",
)


def has_challenge_markers(body: str) -> bool:
    """Check page text for anti-bot interstitial keywords (case-insensitive)."""
    lowered = body.lower()
    return any(marker in lowered for marker in CHALLENGE_MARKERS)


def is_blocked(status_code: int, body: str) -> bool:
    """
    Heuristic for bot-blocking and CAPTCHA pages.

    False negatives are expected; the proxy fallback covers them.
    """
    return status_code in BLOCKING_STATUS_CODES or has_challenge_markers(body)
