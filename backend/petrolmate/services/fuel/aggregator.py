"""Price extremes for one city/fuel-type page"""
from decimal import Decimal
from typing import List, Optional, Tuple

from petrolmate.schemas.fuel import FuelReport, StationRecord


def price_extremes(stations: List[StationRecord]) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """(min, max) of the station prices, or (None, None) for an empty list"""
    if not stations:
        return None, None
    prices = [station.price for station in stations]
    return min(prices), max(prices)


def build_report(stations: List[StationRecord]) -> FuelReport:
    min_price, max_price = price_extremes(stations)
    return FuelReport(stations=list(stations), min_price=min_price, max_price=max_price)
