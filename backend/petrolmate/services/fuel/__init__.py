"""Fuel price crawl services"""
from petrolmate.services.fuel.address import IntersectionMode, normalize_address, normalize_full_address
from petrolmate.services.fuel.aggregator import build_report, price_extremes
from petrolmate.services.fuel.catalog import default_catalog, load_catalog
from petrolmate.services.fuel.extractor import (
    extract_station,
    extract_stations,
    parse_listing,
    raw_listing_from_html,
    raw_listing_from_text
)
from petrolmate.services.fuel.geocode import GeocodeEnricher
from petrolmate.services.fuel.orchestrator import CrawlOrchestrator
from petrolmate.services.fuel.persistence import PersistenceWriter, WriteMode

__all__ = [
    'IntersectionMode',
    'normalize_address',
    'normalize_full_address',
    'build_report',
    'price_extremes',
    'default_catalog',
    'load_catalog',
    'extract_station',
    'extract_stations',
    'parse_listing',
    'raw_listing_from_html',
    'raw_listing_from_text',
    'GeocodeEnricher',
    'CrawlOrchestrator',
    'PersistenceWriter',
    'WriteMode'
]
