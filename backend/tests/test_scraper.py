"""
Tests for giddylist.services.scraper: retailer detection, ASIN extraction,
price parsing, and page scraping with a mocked HTTP session.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from giddylist.services.scraper import (
    ProductScraper,
    decode_html_entities,
    detect_retailer,
    extract_asin,
    extract_meta_content,
    extract_price,
    extract_title,
    is_valid_url,
    normalize_url,
    parse_price,
    scrape_product,
)


AMAZON_HTML = """
<html><head>
<title>Amazon.com: Melissa &amp; Doug Wooden Puzzle</title>
<meta property="og:title" content="Melissa &amp; Doug Wooden Puzzle" />
<meta name="description" content="Chunky wooden puzzle for toddlers" />
<meta property="og:image" content="https://m.media-amazon.com/images/I/puzzle.jpg" />
</head><body>
<span class="a-price-whole">14.</span>
</body></html>
"""


@pytest.fixture(autouse=True)
def fixed_user_agent():
    with patch('giddylist.services.scraper.UserAgent') as user_agent:
        user_agent.return_value.chrome = 'TestAgent/1.0'
        yield user_agent


# ---------------------------------------------------------------------------
# Retailer detection
# ---------------------------------------------------------------------------

class TestDetectRetailer:
    """Hostname classification."""

    @pytest.mark.parametrize('url,expected', [
        ('https://www.amazon.com/dp/B084KPTLXR', 'amazon'),
        ('https://amzn.to/3xYz', 'amazon'),
        ('https://www.walmart.com/ip/123456', 'walmart'),
        ('https://www.target.com/p/-/A-12345', 'target'),
        ('https://www.etsy.com/listing/1', 'other'),
        ('not a url', 'other'),
        ('', 'other'),
    ])
    def test_classifies_hostname(self, url, expected):
        assert detect_retailer(url) == expected


# ---------------------------------------------------------------------------
# ASIN extraction
# ---------------------------------------------------------------------------

class TestExtractAsin:
    """Amazon product identifiers from URL paths."""

    def test_dp_path(self):
        assert extract_asin('https://www.amazon.com/Some-Toy/dp/B084KPTLXR/ref=sr_1_1') == 'B084KPTLXR'

    def test_gp_product_path(self):
        assert extract_asin('https://www.amazon.com/gp/product/b07fz8s74r') == 'B07FZ8S74R'

    def test_dp_example(self):
        assert extract_asin('https://www.amazon.com/dp/B07MDHF4CP') == 'B07MDHF4CP'

    def test_bare_asin_path(self):
        assert extract_asin('https://www.amazon.com/B07MDHF4CP?x=1') == 'B07MDHF4CP'

    def test_no_asin(self):
        assert extract_asin('https://www.amazon.com/s?k=lego') is None

    def test_empty(self):
        assert extract_asin('') is None


# ---------------------------------------------------------------------------
# Price parsing
# ---------------------------------------------------------------------------

class TestParsePrice:
    """Display prices into floats."""

    @pytest.mark.parametrize('raw,expected', [
        ('$19.99', 19.99),
        ('$1,234.56', 1234.56),
        ('12,99 EUR', 12.99),
        ('1,299', 1299.0),
        ('USD 5', 5.0),
    ])
    def test_parses(self, raw, expected):
        assert parse_price(raw) == pytest.approx(expected)

    def test_blank_is_none(self):
        assert parse_price('') is None
        assert parse_price(None) is None

    def test_no_digits_is_none(self):
        assert parse_price('Call for price') is None
        assert parse_price('free') is None


# ---------------------------------------------------------------------------
# HTML helpers
# ---------------------------------------------------------------------------

class TestHtmlHelpers:
    """Meta tag, title, and entity handling."""

    def test_decode_named_and_numeric_entities(self):
        assert decode_html_entities('Tom &amp; Jerry&#39;s &#x41;') == "Tom & Jerry's A"

    def test_meta_content_prefers_og(self):
        html = ('<meta name="title" content="Plain" />'
                '<meta property="og:title" content="Open Graph" />')
        assert extract_meta_content(html, 'title') == 'Open Graph'

    def test_meta_content_reversed_attributes(self):
        html = '<meta content="A cozy blanket" name="description">'
        assert extract_meta_content(html, 'description') == 'A cozy blanket'

    def test_title_falls_back_to_title_tag(self):
        assert extract_title('<title> Stuffed Bear </title>') == 'Stuffed Bear'

    def test_price_from_meta_with_currency(self):
        html = ('<meta property="og:price:amount" content="24.50" />'
                '<meta property="og:price:currency" content="CAD" />')
        assert extract_price(html, 'other') == (24.5, 'CAD')

    def test_price_from_generic_json(self):
        assert extract_price('{"price": 9.95}', 'other') == (9.95, 'USD')

    @pytest.mark.parametrize('html,retailer,expected', [
        ('<span itemprop="price" content="24.97">Now $30.00</span>', 'walmart', 24.97),
        ('<div><span class="price-characteristic">$ 12.99</span></div>', 'walmart', 12.99),
        ('<span data-test="product-price">$19.99</span>', 'target', 19.99),
        ('<span data-test="product-price">8.49</span>', 'target', 8.49),
        ('<span id="priceblock_ourprice">$1,049.00</span>', 'amazon', 1049.0),
    ])
    def test_price_from_retailer_markup(self, html, retailer, expected):
        assert extract_price(html, retailer) == (pytest.approx(expected), 'USD')

    def test_price_missing(self):
        assert extract_price('<html></html>', 'walmart') == (None, 'USD')


class TestUrlHelpers:
    """URL validation and tracking parameter removal."""

    def test_normalize_strips_tracking(self):
        url = 'https://www.target.com/p/toy?utm_source=x&ref=abc&color=red'
        assert normalize_url(url) == 'https://www.target.com/p/toy?color=red'

    def test_normalize_leaves_invalid_urls(self):
        assert normalize_url('just text') == 'just text'

    def test_is_valid_url(self):
        assert is_valid_url('https://www.walmart.com/ip/1')
        assert not is_valid_url('walmart.com/ip/1')
        assert not is_valid_url(None)
        assert not is_valid_url(42)


# ---------------------------------------------------------------------------
# ProductScraper
# ---------------------------------------------------------------------------

class TestProductScraper:
    """Fetching and extracting a product page."""

    def test_scrape_amazon_page(self, mock_response):
        session = MagicMock()
        session.get.return_value = mock_response(text=AMAZON_HTML)
        scraper = ProductScraper(session=session, timeout=5)

        product = scraper.scrape('https://www.amazon.com/dp/B07FZ8S74R')

        assert product.title == 'Melissa & Doug Wooden Puzzle'
        assert product.description == 'Chunky wooden puzzle for toddlers'
        assert product.image_url == 'https://m.media-amazon.com/images/I/puzzle.jpg'
        assert product.price == 14.0
        assert product.retailer == 'amazon'
        assert product.asin == 'B07FZ8S74R'
        assert product.affiliate_url is None
        _, kwargs = session.get.call_args
        assert kwargs['timeout'] == 5
        assert kwargs['headers']['User-Agent'] == 'TestAgent/1.0'

    def test_fetch_failure_returns_empty_payload(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError('boom')
        scraper = ProductScraper(session=session)

        product = scraper.scrape('https://www.walmart.com/ip/55')

        assert product.title is None
        assert product.price is None
        assert product.retailer == 'walmart'
        assert product.asin is None
        assert product.original_url == 'https://www.walmart.com/ip/55'

    def test_http_error_status_returns_empty_payload(self, mock_response):
        response = mock_response(status_code=503)
        response.raise_for_status.side_effect = requests.HTTPError('503')
        session = MagicMock()
        session.get.return_value = response

        product = ProductScraper(session=session).scrape('https://www.amazon.com/dp/B084KPTLXR')

        assert product.title is None
        assert product.asin == 'B084KPTLXR'

    def test_malformed_host_returns_empty_payload(self):
        url = 'https://' + 'a' * 70 + '.com/toy'
        session = MagicMock()
        session.get.side_effect = ValueError('label empty or too long')

        product = ProductScraper(session=session).scrape(url)

        assert product.title is None
        assert product.price is None
        assert product.retailer == 'other'
        assert product.original_url == url

    def test_scrape_product_never_raises(self):
        url = 'https://' + 'a' * 70 + '.com/toy'
        with patch('giddylist.services.scraper.requests.Session') as session_class:
            session_class.return_value.get.side_effect = ValueError('label empty or too long')
            product = scrape_product(url, timeout=3)

        assert product.to_dict()['title'] is None
        assert product.original_url == url

    def test_user_agent_fallback(self, fixed_user_agent):
        fixed_user_agent.side_effect = RuntimeError('no data')
        scraper = ProductScraper(session=MagicMock())
        assert 'Mozilla/5.0' in scraper.headers['User-Agent']
