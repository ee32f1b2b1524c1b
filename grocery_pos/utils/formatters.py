# grocery_pos/utils/formatters.py
from datetime import datetime
import pytz
from decimal import Decimal, ROUND_HALF_UP
from typing import Union
from ..config import Config

CENT = Decimal("0.01")

def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a user supplied number without float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def round2(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round a monetary value to 2 decimal places, half up"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def format_price(amount: Decimal) -> str:
    """Format a price with the store currency"""
    return f"{round2(amount):,.2f} {Config.CURRENCY}"

def format_quantity(qty: Decimal) -> str:
    text = f"{qty:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text

def format_datetime(dt: datetime) -> str:
    """Format a timestamp in the store's time zone"""
    local_tz = pytz.timezone(Config.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(local_tz).strftime("%Y-%m-%d %H:%M:%S")
