from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal("0")
CENTS = Decimal("0.01")
# Above every stored numeric column; larger values are treated as corrupt.
MAX_MAGNITUDE = Decimal("1e15")


def quantize_money(value: Decimal | float | int | str | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def quantize_to(value: Decimal, places: str) -> Decimal:
    return clean_zero(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def parse_decimal(value: object) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float, str)):
        try:
            parsed = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not parsed.is_finite() or abs(parsed) >= MAX_MAGNITUDE:
        return None
    return parsed


def to_decimal(value: object) -> Decimal:
    """Parse a stored amount, treating anything unusable as zero."""
    parsed = parse_decimal(value)
    return ZERO if parsed is None else parsed


def safe_div(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator == 0:
        return ZERO
    return numerator / denominator


def clean_zero(value: Decimal) -> Decimal:
    # Decimal keeps the sign of zero; "-0.00" must not reach a report.
    if value.is_zero():
        return abs(value)
    return value
