"""Lookback range strings to calendar days."""

def range_to_days(rng: str) -> int:
    """Convert chart-style ranges (e.g. '5d', '2w', '3mo', '1y') to calendar days."""
    rng = rng.strip().lower()
    if rng.endswith("mo"):
        return int(rng[:-2]) * 30
    if rng.endswith("d"):
        return int(rng[:-1])
    if rng.endswith("w"):
        return int(rng[:-1]) * 7
    if rng.endswith("y"):
        return int(rng[:-1]) * 365
    raise ValueError(f"Unsupported range: {rng}")
