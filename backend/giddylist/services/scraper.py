"""Retailer detection and best-effort product metadata extraction.

Every extraction step degrades to ``None`` for its own field. Only a failed
fetch (network error, malformed URL or non-OK status) empties the whole
payload, and even then ``scrape_product`` returns normally.
"""
import logging
import re
from dataclasses import asdict, dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests
from fake_useragent import UserAgent

logger = logging.getLogger(__name__)

RETAILERS = ('amazon', 'walmart', 'target', 'other')

DEFAULT_USER_AGENT = (
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)

ASIN_PATTERNS = [
    re.compile(r'/dp/([A-Z0-9]{10})', re.IGNORECASE),
    re.compile(r'/gp/product/([A-Z0-9]{10})', re.IGNORECASE),
    re.compile(r'/gp/aw/d/([A-Z0-9]{10})', re.IGNORECASE),
    re.compile(r'/([A-Z0-9]{10})(?:[/?]|$)', re.IGNORECASE),
]

TRACKING_PARAMS = {'utm_source', 'utm_medium', 'utm_campaign', 'utm_term', 'utm_content',
                   'ref', 'ref_', 'tag'}

HTML_ENTITIES = {
    '&amp;': '&',
    '&lt;': '<',
    '&gt;': '>',
    '&quot;': '"',
    '&#39;': "'",
    '&apos;': "'",
    '&#x27;': "'",
    '&nbsp;': ' ',
}

PRICE_PATTERNS = {
    'amazon': [
        re.compile(r'<span[^>]*class="[^"]*a-price-whole[^"]*"[^>]*>([^<]+)', re.IGNORECASE),
        re.compile(r'<span[^>]*id="priceblock_ourprice"[^>]*>\s*\$?([\d,.]+)', re.IGNORECASE),
        re.compile(r'<span[^>]*id="priceblock_dealprice"[^>]*>\s*\$?([\d,.]+)', re.IGNORECASE),
        re.compile(r'data-a-color="price"[^>]*>\s*<span[^>]*>\s*\$?([\d,.]+)', re.IGNORECASE),
    ],
    'walmart': [
        re.compile(r'<span[^>]*itemprop="price"[^>]*content="([\d.]+)"', re.IGNORECASE),
        re.compile(r'\$\s*([\d,.]+)\s*</span>', re.IGNORECASE),
    ],
    'target': [
        re.compile(r'\$\s*([\d,.]+)'),
        re.compile(r'<span[^>]*data-test="product-price"[^>]*>\s*\$?([\d,.]+)', re.IGNORECASE),
    ],
}

GENERIC_PRICE_PATTERNS = [
    re.compile(r'price[\'"]\s*:\s*[\'"]\$?([\d,.]+)', re.IGNORECASE),
    re.compile(r'"price"\s*:\s*([\d.]+)', re.IGNORECASE),
]

TITLE_TAG = re.compile(r'<title[^>]*>([^<]+)</title>', re.IGNORECASE)


@dataclass
class ScrapedProduct:
    title: Optional[str]
    description: Optional[str]
    image_url: Optional[str]
    price: Optional[float]
    currency: str
    retailer: str
    asin: Optional[str]
    original_url: str
    affiliate_url: Optional[str] = None

    def to_dict(self):
        return asdict(self)


def detect_retailer(url: str) -> str:
    """Classify a URL by hostname; anything unparseable is 'other'."""
    try:
        hostname = (urlparse(url).hostname or '').lower()
    except (ValueError, TypeError, AttributeError):
        return 'other'

    if 'amazon.com' in hostname or 'amzn.to' in hostname or 'amzn.com' in hostname:
        return 'amazon'
    if 'walmart.com' in hostname:
        return 'walmart'
    if 'target.com' in hostname:
        return 'target'
    return 'other'


def extract_asin(url: str) -> Optional[str]:
    if not url:
        return None
    for pattern in ASIN_PATTERNS:
        match = pattern.search(url)
        if match and match.group(1):
            potential = match.group(1).upper()
            if re.fullmatch(r'[A-Z0-9]{10}', potential):
                return potential
    return None


def parse_price(price_string) -> Optional[float]:
    """Parse a display price such as '$1,234.56' or '12,99 EUR'."""
    if not price_string:
        return None

    cleaned = re.sub(r'[^0-9.,]', '', str(price_string))
    if ',' in cleaned:
        # A lone comma followed by one or two digits is a decimal comma
        if '.' not in cleaned and re.fullmatch(r'\d*,\d{1,2}', cleaned):
            cleaned = cleaned.replace(',', '.')
        else:
            cleaned = cleaned.replace(',', '')

    match = re.search(r'(\d+\.?\d*)', cleaned)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def decode_html_entities(text: str) -> str:
    decoded = text
    for entity, char in HTML_ENTITIES.items():
        decoded = decoded.replace(entity, char)

    decoded = re.sub(r'&#(\d+);', lambda m: _safe_chr(int(m.group(1), 10), m.group(0)), decoded)
    decoded = re.sub(r'&#x([0-9a-f]+);', lambda m: _safe_chr(int(m.group(1), 16), m.group(0)),
                     decoded, flags=re.IGNORECASE)
    return decoded


def _safe_chr(code, fallback):
    try:
        return chr(code)
    except (ValueError, OverflowError):
        return fallback


def normalize_url(url: str) -> str:
    """Strip tracking parameters; invalid URLs come back unchanged."""
    try:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.netloc:
            return url
        query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
                 if k not in TRACKING_PARAMS]
        return urlunparse(parsed._replace(query=urlencode(query)))
    except ValueError:
        return url


def is_valid_url(url) -> bool:
    if not url or not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def extract_meta_content(html: str, prop: str) -> Optional[str]:
    """Find a meta tag's content, og:<prop> first, then name=<prop>."""
    name = re.escape(prop)
    og_patterns = [
        rf'<meta[^>]*property=["\']og:{name}["\'][^>]*content=["\']([^"\']+)["\']',
        rf'<meta[^>]*content=["\']([^"\']+)["\'][^>]*property=["\']og:{name}["\']',
    ]
    name_patterns = [
        rf'<meta[^>]*name=["\']{name}["\'][^>]*content=["\']([^"\']+)["\']',
        rf'<meta[^>]*content=["\']([^"\']+)["\'][^>]*name=["\']{name}["\']',
    ]
    for pattern in og_patterns + name_patterns:
        match = re.search(pattern, html, re.IGNORECASE)
        if match and match.group(1):
            return decode_html_entities(match.group(1))
    return None


def extract_title(html: str) -> Optional[str]:
    og_title = extract_meta_content(html, 'title')
    if og_title:
        return og_title

    match = TITLE_TAG.search(html)
    if match and match.group(1):
        return decode_html_entities(match.group(1).strip())
    return None


def extract_price(html: str, retailer: str):
    """Return (price, currency) from meta tags or retailer markup."""
    price_string = extract_meta_content(html, 'price:amount')
    if price_string:
        currency = extract_meta_content(html, 'price:currency') or 'USD'
        return parse_price(price_string), currency

    price_string = _first_match(PRICE_PATTERNS.get(retailer, []), html)
    if not price_string:
        price_string = _first_match(GENERIC_PRICE_PATTERNS, html)

    return parse_price(price_string), 'USD'


def _first_match(patterns, html):
    for pattern in patterns:
        match = pattern.search(html)
        if match and match.group(1):
            return match.group(1)
    return None


class ProductScraper:
    """Fetches a product page and pulls out its metadata."""

    def __init__(self, session=None, timeout=15):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)
        self.headers = {
            'User-Agent': self._user_agent(),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
        }

    def _user_agent(self):
        try:
            return UserAgent(fallback=DEFAULT_USER_AGENT).chrome
        except Exception as e:
            self.logger.warning(f"Could not load user agent data: {str(e)}")
            return DEFAULT_USER_AGENT

    def scrape(self, url: str) -> ScrapedProduct:
        retailer = detect_retailer(url)
        asin = extract_asin(url) if retailer == 'amazon' else None

        try:
            response = self.session.get(
                url,
                headers=self.headers,
                allow_redirects=True,
                timeout=self.timeout
            )
            response.raise_for_status()
            html = response.text
        except Exception as e:
            self.logger.error(f"Scrape error for {url}: {str(e)}")
            return ScrapedProduct(
                title=None,
                description=None,
                image_url=None,
                price=None,
                currency='USD',
                retailer=retailer,
                asin=asin,
                original_url=url,
            )

        price, currency = extract_price(html, retailer)
        product = ScrapedProduct(
            title=extract_title(html),
            description=extract_meta_content(html, 'description'),
            image_url=extract_meta_content(html, 'image'),
            price=price,
            currency=currency,
            retailer=retailer,
            asin=asin,
            original_url=url,
        )
        self.logger.info(f"Scraped {retailer} product: {product.title} ({product.price})")
        return product


def scrape_product(url: str, session=None, timeout=15) -> ScrapedProduct:
    return ProductScraper(session=session, timeout=timeout).scrape(url)
