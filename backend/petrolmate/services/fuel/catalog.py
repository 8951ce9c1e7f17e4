"""City and fuel-type catalog for the PetrolSpy crawl"""
import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from petrolmate.core.errors import CatalogError
from petrolmate.schemas.fuel import Catalog, City, FuelType

logger = logging.getLogger(__name__)


# Map centre for each capital, as used in /map/latlng/{lat}/{lng}
CITY_COORDINATES = {
    "Adelaide": "-34.928499/138.600746",
    "Brisbane": "-27.469771/153.025124",
    "Canberra": "-35.280937/149.130009",
    "Darwin": "-12.463440/130.845642",
    "Hobart": "-42.882137/147.327195",
    "Melbourne": "-37.813628/144.963058",
    "Perth": "-31.950527/115.860457",
    "Sydney": "-33.868820/151.209296",
}

# Catalog key -> id of the matching #option_{id} entry in the fuel dropdown
FUEL_TYPES = {
    "U91": "U91",
    "E10": "E10",
    "U95": "U95",
    "U98": "U98",
    "Diesel": "DIESEL",
    "PremiumDiesel": "PREMIUM_DIESEL",
    "LPG": "LPG",
}


def default_catalog() -> Catalog:
    """Catalog built from the bundled city and fuel-type tables"""
    return Catalog(
        cities=tuple(City(key=key, location_descriptor=value) for key, value in CITY_COORDINATES.items()),
        fuel_types=tuple(FuelType(key=key, site_id=value) for key, value in FUEL_TYPES.items()),
    )


def load_catalog(path: Optional[Union[str, Path]] = None) -> Catalog:
    """
    Load the crawl catalog.

    The JSON file mirrors the bundled tables:
        {"cities": {"Adelaide": "-34.9/138.6", ...},
         "fuel_types": {"U91": "U91", ...}}

    Args:
        path: JSON file to read; the bundled catalog is used when None

    Returns:
        Immutable Catalog

    Raises:
        CatalogError: If the file is missing, unreadable or invalid
    """
    if path is None:
        return default_catalog()

    catalog_path = Path(path)
    try:
        raw = json.loads(catalog_path.read_text(encoding='utf-8'))
    except (OSError, ValueError) as e:
        raise CatalogError(f"Cannot read catalog {catalog_path}: {e}") from e

    if not isinstance(raw, dict):
        raise CatalogError(f"Catalog {catalog_path} must be a JSON object")

    cities = raw.get('cities')
    fuel_types = raw.get('fuel_types')
    if not isinstance(cities, dict) or not cities:
        raise CatalogError(f"Catalog {catalog_path} has no 'cities' mapping")
    if not isinstance(fuel_types, dict) or not fuel_types:
        raise CatalogError(f"Catalog {catalog_path} has no 'fuel_types' mapping")

    try:
        catalog = Catalog(
            cities=tuple(City(key=k, location_descriptor=v) for k, v in cities.items()),
            fuel_types=tuple(FuelType(key=k, site_id=v) for k, v in fuel_types.items()),
        )
    except ValidationError as e:
        raise CatalogError(f"Invalid catalog {catalog_path}: {e}") from e

    logger.info(f"Loaded catalog from {catalog_path}: {len(catalog.cities)} cities x {len(catalog.fuel_types)} fuel types")
    return catalog
