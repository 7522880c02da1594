# propertymap/utils.py
"""Shared utilities: logging setup and display formatting helpers."""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

NOT_AVAILABLE = "N/A"


def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("property-explorer")


def _grouped(value: float) -> str:
    # thousands separators, at most three decimals, no trailing zeros
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return text or "0"


def format_price(price) -> str:
    if price is None:
        return NOT_AVAILABLE
    return f"${_grouped(float(price))}"


def format_acres(acres) -> str:
    if acres is None:
        return NOT_AVAILABLE
    return f"{_grouped(float(acres))} acres"


def format_text(value) -> str:
    return value if value else NOT_AVAILABLE


def format_coordinates(lat: float, lng: float) -> str:
    """Text copied to the clipboard for a coordinate pair."""
    return f"{lat}, {lng}"
