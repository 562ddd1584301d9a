"""Human-readable formatting of amounts, addresses and dates."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

_MILLION = Decimal(1_000_000)
_THOUSAND = Decimal(1_000)


def truncate_address(address: str, chars: int = 4) -> str:
    """Truncate an address to 0x1234...5678 format."""
    if len(address) < chars * 2 + 4:
        return address
    return f"{address[: chars + 2]}...{address[-chars:]}"


def format_amount(amount: Decimal | int | float) -> str:
    """Compact token amount: 1.2M, 3.4K, or up to two decimals with separators."""
    value = Decimal(str(amount))
    if value >= _MILLION:
        return f"{value / _MILLION:.1f}M"
    if value >= _THOUSAND:
        return f"{value / _THOUSAND:.1f}K"
    rounded = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_percent(value: float, places: int = 1) -> str:
    return f"{value:.{places}f}%"


def format_date(timestamp: int | None) -> str:
    """Unix seconds to 'Jan 2, 2025' (UTC); 'unknown' when missing or out of range."""
    if timestamp is None:
        return "unknown"
    try:
        moment = datetime.fromtimestamp(timestamp, tz=UTC)
    except (ValueError, OverflowError, OSError):
        return "unknown"
    return f"{moment:%b} {moment.day}, {moment.year}"


def decimal_str(value: Decimal | None) -> str | None:
    """Plain decimal string without exponent or trailing zeros; None passes through."""
    if value is None:
        return None
    return f"{value.normalize():f}"
