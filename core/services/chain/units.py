"""
Base-unit helpers
Integer base units <-> decimal strings, without going through floats
"""
import re
from decimal import Decimal, InvalidOperation, localcontext
from typing import Union

HEX_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_hex_address(value) -> bool:
    """20-byte hex address, any letter case"""
    return isinstance(value, str) and bool(HEX_ADDRESS_RE.fullmatch(value))


def format_units(value: int, decimals: int) -> str:
    """
    Format a base-unit integer as a decimal string

    1500000 with 6 decimals -> "1.5"; trailing zeros and a bare point are dropped.
    """
    negative = value < 0
    value = abs(int(value))
    base = 10 ** decimals
    whole, fraction = divmod(value, base)

    text = str(whole)
    if decimals and fraction:
        text += "." + str(fraction).rjust(decimals, "0").rstrip("0")
    return f"-{text}" if negative else text


def parse_units(amount: Union[str, int, Decimal], decimals: int) -> int:
    """
    Scale a human-readable amount to base units

    Raises:
        ValueError: not a number, or more fractional digits than decimals
    """
    try:
        # Default context precision (28 digits) would round large amounts
        with localcontext() as ctx:
            ctx.prec = 100
            scaled = Decimal(str(amount).strip()).scaleb(decimals)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e

    if not scaled.is_finite() or scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {amount!r} has more than {decimals} decimal places")
    return int(scaled)


def parse_base_units(amount: Union[str, int]) -> int:
    """
    Parse an integer base-unit amount ("1000000000000000000")

    Raises:
        ValueError: anything but a plain base-10 integer
    """
    if isinstance(amount, bool):
        raise ValueError("Amount must be an integer")
    if isinstance(amount, int):
        return amount
    text = str(amount).strip()
    if not re.fullmatch(r"[+-]?\d+", text):
        raise ValueError(f"Amount must be an integer in base units: {amount!r}")
    return int(text)
