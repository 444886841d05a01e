"""Unit conversions for route readouts."""

METERS_PER_MILE = 1609.34


def meters_to_miles(meters: float) -> float:
    """Convert meters to miles, rounded to two decimals.

    Example:
        >>> meters_to_miles(5420)
        3.37
    """
    return round(meters / METERS_PER_MILE, 2)


def format_duration(seconds: float) -> str:
    """Format a duration in seconds for display.

    Example:
        >>> format_duration(3900)
        '1h 5m'
        >>> format_duration(380)
        '6m 20s'
    """
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
