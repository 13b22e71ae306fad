import os
import math

def get_secret(name: str, default: str | None = None) -> str | None:
    """
    Reads a secret from Docker secrets if available,
    otherwise falls back to a normal environment variable.
    """
    file_path = os.getenv(f"{name}_FILE")
    if file_path and os.path.exists(file_path):
        with open(file_path, "r") as f:
            return f.read().strip()
    return os.getenv(name, default)


def to_number(value) -> float | None:
    """
    Coerces ints, floats and numeric strings (the pricing columns are text)
    into a finite float. Anything else, NaN and infinities included, is None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(number):
        return None

    return number
