from decimal import ROUND_HALF_UP, Decimal

TWOPLACES = Decimal("0.01")


def money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
