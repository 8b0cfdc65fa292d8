"""Numeric string utilities used by the stream decoders."""

from decimal import Context, Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

# Fractional digits used when expanding exponential notation
SCIENTIFIC_PRECISION = 20

_QUANTUM = Decimal(1).scaleb(-SCIENTIFIC_PRECISION)

# Larger magnitudes are left in exponential notation
MAX_EXPANDED_EXPONENT = 308


def format_scientific_notation(value: Any) -> str:
    """Render a numeric-as-string wire value as a plain decimal string.

    ``None`` becomes ``"0"``. Values written in exponential notation
    (``1.23e-8``, ``5E+3``) are expanded to 20 fractional digits with
    trailing zeros and a dangling decimal point removed. Magnitudes of
    ``1e309`` and up, and anything else, are returned as their string
    form, untouched.

    Decimal arithmetic is used throughout so the original scale survives.
    """
    if value is None:
        return "0"

    str_value = str(value)
    if "e" not in str_value and "E" not in str_value:
        return str_value

    try:
        parsed = Decimal(str_value)
    except (InvalidOperation, ValueError):
        return str_value
    if not parsed.is_finite() or parsed.adjusted() > MAX_EXPANDED_EXPONENT:
        return str_value

    # Enough digits for the integer part plus the fixed fraction
    context = Context(
        prec=max(28, parsed.adjusted() + SCIENTIFIC_PRECISION + 2),
        rounding=ROUND_HALF_UP,
    )
    try:
        quantized = parsed.quantize(_QUANTUM, context=context)
    except InvalidOperation:
        return str_value
    text = format(quantized, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text
