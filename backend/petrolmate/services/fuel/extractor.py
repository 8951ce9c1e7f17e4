"""
Listing extraction
Turns one scraped station listing into a StationRecord
"""
import logging
import re
from decimal import Decimal
from typing import List, Optional

from bs4 import BeautifulSoup

from petrolmate.schemas.fuel import RawListing, StationRecord
from petrolmate.services.fuel.address import IntersectionMode, normalize_address
from petrolmate.services.fuel.geocode import Geocoder

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(r'\d+\.\d+')

# PetrolSpy list-view markup
PRICE_COLUMN = 'stations-item-column-first'
DETAILS_COLUMN = 'stations-item-column-middle'


def raw_listing_from_html(html: str) -> RawListing:
    """
    Build a RawListing from one rendered .stations-list-item element.

    Text is read the way the browser's textContent reads it, with <br>
    turned into line breaks. The suburb is the second <b> in the details column.
    """
    soup = BeautifulSoup(html, 'lxml')

    price_col = soup.find(class_=PRICE_COLUMN)
    details_col = soup.find(class_=DETAILS_COLUMN)

    price_text = price_col.get_text() if price_col else ""

    details_text = ""
    suburb_text = None
    if details_col:
        for br in details_col.find_all('br'):
            br.replace_with('\n')
        bolds = details_col.find_all('b')
        if len(bolds) > 1:
            suburb_text = bolds[1].get_text()
        details_text = details_col.get_text()

    logo_src = None
    if price_col:
        img = price_col.find('img')
        if img is not None:
            logo_src = img.get('src')

    return RawListing(
        price_text=price_text,
        details_text=details_text,
        suburb_text=suburb_text,
        logo_src=logo_src,
    )


def raw_listing_from_text(block: str, logo_src: Optional[str] = None) -> RawListing:
    """Build a RawListing from a plain text block whose first line carries the price"""
    lines = block.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)

    if lines and PRICE_PATTERN.search(lines[0]):
        return RawListing(price_text=lines[0], details_text='\n'.join(lines[1:]), logo_src=logo_src)

    return RawListing(price_text="", details_text=block, logo_src=logo_src)


def parse_listing(
    listing: RawListing,
    mode: IntersectionMode = IntersectionMode.KEEP,
) -> Optional[StationRecord]:
    """
    Parse a listing into a StationRecord without coordinates.

    Returns None when no price is present (not an error), and also for
    malformed listings, which are logged and skipped.
    """
    price_match = PRICE_PATTERN.search(listing.price_text or '')
    if not price_match:
        return None

    try:
        lines = [line.strip() for line in (listing.details_text or '').split('\n')]
        lines = [line for line in lines if line]

        if len(lines) < 2:
            logger.warning(f"Listing with price {price_match.group(0)} has no name/street lines, skipping")
            return None

        station_name, street = lines[0], lines[1]
        address = normalize_address(lines[2:], street, listing.suburb_text, mode)

        return StationRecord(
            station_name=station_name,
            address=address,
            price=Decimal(price_match.group(0)),
            logo_url=listing.logo_src,
        )

    except Exception as e:
        logger.warning(f"Error parsing listing: {e}")
        return None


async def extract_station(
    listing: RawListing,
    geocoder: Optional[Geocoder] = None,
    mode: IntersectionMode = IntersectionMode.KEEP,
) -> Optional[StationRecord]:
    """
    Parse a listing and attach coordinates for its full address.

    Args:
        listing: Raw listing from the page source
        geocoder: Geocoder used for coordinates, or None to skip them
        mode: Intersection policy for the address

    Returns:
        StationRecord, or None when the listing has no usable price
    """
    record = parse_listing(listing, mode)
    if record is None or geocoder is None:
        return record

    coordinates = await geocoder.geocode(record.address.full_address)
    if coordinates is None:
        return record
    return record.model_copy(update={'coordinates': coordinates})


async def extract_stations(
    listings: List[RawListing],
    geocoder: Optional[Geocoder] = None,
    mode: IntersectionMode = IntersectionMode.KEEP,
) -> List[StationRecord]:
    """Extract every listing in page order, dropping the ones without a price"""
    stations = []
    for listing in listings:
        station = await extract_station(listing, geocoder, mode)
        if station is not None:
            stations.append(station)

    skipped = len(listings) - len(stations)
    if skipped:
        logger.info(f"Extracted {len(stations)} stations ({skipped} listings without price skipped)")
    else:
        logger.info(f"Extracted {len(stations)} stations")

    return stations
