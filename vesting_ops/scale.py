from decimal import Decimal, InvalidOperation

PERCENTAGE_DECIMALS = 4
PERCENTAGE_SCALE_FACTOR = 10**PERCENTAGE_DECIMALS
# 100% expressed in the contract's percentage scale
HUNDRED_PERCENT = 100 * PERCENTAGE_SCALE_FACTOR

DAY = 24 * 60 * 60
SECONDS_IN_MONTH = 30 * DAY  # 30 days per month
YEAR = 365 * DAY

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def parse_units(value, decimals):
    """Converts a human decimal amount (int, str or Decimal) into integer base units.

    Raises ValueError if the value is not a number or has more fractional digits than `decimals`.
    """
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid decimal amount: {value!r}")
    if not d.is_finite():
        raise ValueError(f"Invalid decimal amount: {value!r}")
    scaled = d.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Too many decimals in {value!r} (max {decimals})")
    return int(scaled)


def format_units(value, decimals):
    """Formats integer base units as a decimal string, ethers-style: always at least one
    fractional digit, trailing zeros removed (1000e18 -> "1000.0")."""
    value = int(value)
    sign = "-" if value < 0 else ""
    whole, frac = divmod(abs(value), 10**decimals)
    frac = f"{frac:0{decimals}d}".rstrip("0") if decimals else ""
    return f"{sign}{whole}.{frac or '0'}"


def eX(value, decimals):
    return parse_units(value, decimals)


def e18(value):
    return parse_units(value, 18)


def format_ether(value):
    return format_units(value, 18)


def format_percentage(value):
    """Formats a scaled percentage (10% == 100000) as "10.0%"."""
    return format_units(value, PERCENTAGE_DECIMALS) + "%"


def format_months(seconds):
    months = Decimal(int(seconds)) / SECONDS_IN_MONTH
    if months == months.to_integral_value():
        return f"{int(months)} months"
    return f"{months.normalize():f} months"
