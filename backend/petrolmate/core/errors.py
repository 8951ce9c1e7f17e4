"""Crawler exception types"""


class CrawlerError(Exception):
    """Base class for errors raised by the crawler's own adapters"""


class PageSourceError(CrawlerError):
    """Browser navigation, element wait or extraction failed"""


class CatalogError(CrawlerError):
    """City/fuel-type catalog could not be loaded or is invalid"""
