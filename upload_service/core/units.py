"""Byte-unit conversion helpers."""

SIZE_MULTIPLIERS: dict[str, int] = {
    "k": 1024,
    "m": 1024**2,
    "g": 1024**3,
}


def convert_to_bytes(value: str | int) -> int:
    """Convert a size such as ``"2M"`` or ``"512k"`` to bytes.

    A bare number passes through unchanged.
    """
    text = str(value).strip()
    if not text:
        raise ValueError("Empty size value")

    multiplier = SIZE_MULTIPLIERS.get(text[-1].lower())
    if multiplier is None:
        return int(text)
    return int(text[:-1].strip()) * multiplier


def convert_from_bytes(num: int | float) -> str:
    """Format a byte count in KB, or in MB once it passes 1024 KB."""
    kilobytes = num / 1024
    if kilobytes > 1024:
        return f"{kilobytes / 1024:,.1f} MB"
    return f"{kilobytes:,.1f} KB"
