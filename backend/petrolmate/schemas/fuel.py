"""
Fuel price schemas
Catalog entries, scraped listings, station records and per-page reports
"""
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FuelType(BaseModel):
    """Fuel type catalog entry"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    site_id: str = Field(..., min_length=1, description="Identifier used by the source site's fuel dropdown")


class City(BaseModel):
    """City catalog entry"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1)
    location_descriptor: str = Field(..., min_length=1, description="lat/lng pair used in the map URL")


class Catalog(BaseModel):
    """Immutable city x fuel-type cross product to crawl"""
    model_config = ConfigDict(frozen=True)

    cities: Tuple[City, ...]
    fuel_types: Tuple[FuelType, ...]

    @model_validator(mode='after')
    def check_unique_keys(self):
        for label, entries in (('city', self.cities), ('fuel type', self.fuel_types)):
            keys = [entry.key for entry in entries]
            if len(keys) != len(set(keys)):
                raise ValueError(f'Duplicate {label} keys in catalog: {keys}')
        return self


class RawListing(BaseModel):
    """One station's scraped text blocks and logo attribute, as rendered"""
    price_text: str = ""
    details_text: str = ""
    suburb_text: Optional[str] = Field(None, description="Explicitly tagged suburb, when the layout marks it")
    logo_src: Optional[str] = None


class Coordinates(BaseModel):
    """Latitude/longitude in decimal degrees"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Address(BaseModel):
    """Normalized station address; full_address is built by the normalizer"""
    model_config = ConfigDict(frozen=True)

    street_address: str
    suburb: str = ""
    postcode: str = ""
    full_address: str

    def to_document(self) -> Dict[str, str]:
        return {
            'streetAddress': self.street_address,
            'suburb': self.suburb,
            'postcode': self.postcode,
            'fullAddress': self.full_address,
        }


class StationRecord(BaseModel):
    """A priced station listing"""
    model_config = ConfigDict(frozen=True)

    station_name: str = Field(..., min_length=1)
    address: Address
    coordinates: Optional[Coordinates] = None
    price: Decimal = Field(..., gt=0)
    logo_url: Optional[str] = None

    def to_document(self) -> Dict[str, Any]:
        """Serialize for the document store (camelCase, price as scraped)"""
        coordinates: Dict[str, float] = {}
        if self.coordinates is not None:
            coordinates = {
                'latitude': self.coordinates.latitude,
                'longitude': self.coordinates.longitude,
            }
        return {
            'stationName': self.station_name,
            'address': self.address.to_document(),
            'coordinates': coordinates,
            'price': str(self.price),
            'logo': self.logo_url,
        }


class FuelReport(BaseModel):
    """Stations and price extremes for one city/fuel-type page"""
    model_config = ConfigDict(frozen=True)

    stations: List[StationRecord] = Field(default_factory=list)
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    @model_validator(mode='after')
    def check_extremes(self):
        if not self.stations:
            if self.min_price is not None or self.max_price is not None:
                raise ValueError('Empty report cannot carry min/max prices')
            return self
        if self.min_price is None or self.max_price is None:
            raise ValueError('Non-empty report requires min and max prices')
        if self.min_price > self.max_price:
            raise ValueError(f'min_price {self.min_price} exceeds max_price {self.max_price}')
        return self

    def to_document(self) -> Dict[str, Any]:
        return {
            'stations': [station.to_document() for station in self.stations],
            'minPrice': str(self.min_price) if self.min_price is not None else None,
            'maxPrice': str(self.max_price) if self.max_price is not None else None,
        }


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class CrawlRun(BaseModel):
    """Summary of one orchestrator invocation"""
    state: RunState = RunState.IDLE
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    combinations_succeeded: int = 0
    combinations_failed: int = 0
    stations_written: int = 0
    writes_failed: int = 0
    metadata_written: bool = False
    errors: List[str] = Field(default_factory=list)

    @property
    def duration(self) -> Optional[timedelta]:
        if self.started_at is None or self.finished_at is None:
            return None
        return self.finished_at - self.started_at
