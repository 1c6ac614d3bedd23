"""Amazon Associates tagging for scraped products and outbound links.

Only Amazon URLs get a tag. Other retailers pass through untouched.
"""
import os
from dataclasses import replace
from typing import Optional
from urllib.parse import parse_qs, parse_qsl, urlencode, urlparse, urlunparse

from giddylist.services.scraper import ScrapedProduct, extract_asin


def get_amazon_tag() -> Optional[str]:
    return os.environ.get('AMAZON_AFFILIATE_TAG') or None


def _set_query_param(url, key, value):
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError(f"Not an absolute URL: {url}")
    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != key]
    if value is not None:
        query.append((key, value))
    return urlunparse(parsed._replace(query=urlencode(query)))


def create_amazon_affiliate_url(url: str, asin: Optional[str]) -> Optional[str]:
    tag = get_amazon_tag()
    if not tag:
        return None

    product_asin = asin or extract_asin(url)
    if product_asin:
        return f"https://www.amazon.com/dp/{product_asin}?tag={tag}"

    try:
        return _set_query_param(url, 'tag', tag)
    except ValueError:
        return None


def create_affiliate_url(url: str, retailer: str, asin: Optional[str]) -> Optional[str]:
    if retailer == 'amazon':
        return create_amazon_affiliate_url(url, asin)
    # Walmart and Target need a CJ/Impact partnership first
    return None


def add_affiliate_link(product: ScrapedProduct) -> ScrapedProduct:
    affiliate_url = create_affiliate_url(product.original_url, product.retailer, product.asin)
    return replace(product, affiliate_url=affiliate_url)


def get_best_url(affiliate_url: Optional[str], original_url: str) -> str:
    return affiliate_url or original_url


def is_affiliate_link(url: str) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    hostname = (parsed.hostname or '').lower()
    return 'amazon' in hostname and 'tag' in parse_qs(parsed.query)


def get_affiliate_tag(url: str) -> Optional[str]:
    try:
        values = parse_qs(urlparse(url).query).get('tag')
    except ValueError:
        return None
    return values[0] if values else None


def strip_affiliate_tag(url: str) -> str:
    try:
        return _set_query_param(url, 'tag', None)
    except ValueError:
        return url


def tag_amazon_url(url: str) -> str:
    """Add the Amazon tag to an amazon.com URL, leaving anything else alone."""
    tag = get_amazon_tag()
    if not tag or 'amazon.com' not in url:
        return url
    try:
        return _set_query_param(url, 'tag', tag)
    except ValueError:
        return url
