import logging

from sqlalchemy.exc import SQLAlchemyError

from giddylist import db
from giddylist.errors import BadRequest, ServiceUnavailable
from giddylist.models import TrendingGift
from giddylist.models.base import isoformat, utcnow
from giddylist.models.collection import AGE_RANGES
from giddylist.services.affiliate import add_affiliate_link
from giddylist.services.scraper import ScrapedProduct, is_valid_url, scrape_product

AGE_SEARCH_TERMS = {
    '0-2': ['best baby toys', 'toddler gifts', 'infant learning toys',
            'baby development toys', 'first birthday gifts'],
    '3-5': ['preschool toys', 'educational toys ages 3-5', 'best toys for preschoolers',
            'imagination play toys', 'outdoor toys toddlers'],
    '6-8': ['best toys for 6 year olds', 'kids stem toys', 'building toys kids',
            'board games for kids', 'arts and crafts kids'],
    '9-12': ['tween gifts', 'stem kits kids', 'popular toys 9-12',
             'building sets kids', 'science kits kids'],
    '13-18': ['teen gifts', 'gifts for teenagers', 'teen tech gifts',
              'popular teen items', 'teen hobby gifts'],
}

CURATED_TRENDING_GIFTS = [
    # 0-2
    {
        'title': 'Fisher-Price Laugh & Learn Smart Stages Piggy Bank',
        'description': 'Interactive piggy bank with songs, sounds, and phrases that teach counting, colors, and more.',
        'image_url': 'https://m.media-amazon.com/images/I/81qYpf1Ql9L._AC_SL1500_.jpg',
        'price': 19.99,
        'product_url': 'https://www.amazon.com/dp/B07MDHF4CP',
        'age_range': '0-2',
        'category': 'toys',
        'trending_score': 95,
    },
    {
        'title': 'Baby Einstein Take Along Tunes Musical Toy',
        'description': 'Portable music player with 7 classical melodies for on-the-go entertainment.',
        'image_url': 'https://m.media-amazon.com/images/I/81nOvKKzMRL._AC_SL1500_.jpg',
        'price': 12.99,
        'product_url': 'https://www.amazon.com/dp/B000YDDF6O',
        'age_range': '0-2',
        'category': 'toys',
        'trending_score': 92,
    },
    {
        'title': 'Melissa & Doug Wooden Building Blocks Set',
        'description': '100 classic wooden blocks in 4 colors and 9 shapes for endless building fun.',
        'image_url': 'https://m.media-amazon.com/images/I/91hH4VB7YwL._AC_SL1500_.jpg',
        'price': 24.99,
        'product_url': 'https://www.amazon.com/dp/B00008W72D',
        'age_range': '0-2',
        'category': 'toys',
        'trending_score': 90,
    },
    # 3-5
    {
        'title': 'LEGO DUPLO Classic Brick Box Building Set',
        'description': 'Starter brick set perfect for preschoolers to build, create, and imagine.',
        'image_url': 'https://m.media-amazon.com/images/I/91lNnxeFaxL._AC_SL1500_.jpg',
        'price': 34.99,
        'product_url': 'https://www.amazon.com/dp/B084KPTLXR',
        'age_range': '3-5',
        'category': 'toys',
        'trending_score': 98,
    },
    {
        'title': 'Play-Doh Modeling Compound 10-Pack Case of Colors',
        'description': 'Classic creative play with 10 vibrant colors of non-toxic compound.',
        'image_url': 'https://m.media-amazon.com/images/I/81Ri0KEFVPL._AC_SL1500_.jpg',
        'price': 9.99,
        'product_url': 'https://www.amazon.com/dp/B00JM5GW10',
        'age_range': '3-5',
        'category': 'arts-crafts',
        'trending_score': 96,
    },
    {
        'title': 'Magna-Tiles Clear Colors 100 Piece Set',
        'description': 'Award-winning magnetic building tiles for STEM learning and creative play.',
        'image_url': 'https://m.media-amazon.com/images/I/81RJe4QFxnL._AC_SL1500_.jpg',
        'price': 119.99,
        'product_url': 'https://www.amazon.com/dp/B000CBSNRY',
        'age_range': '3-5',
        'category': 'toys',
        'trending_score': 94,
    },
    # 6-8
    {
        'title': 'LEGO Classic Large Creative Brick Box',
        'description': '790 pieces for unlimited building possibilities and creative expression.',
        'image_url': 'https://m.media-amazon.com/images/I/91bJRLqHhVL._AC_SL1500_.jpg',
        'price': 49.99,
        'product_url': 'https://www.amazon.com/dp/B00NHQF6MG',
        'age_range': '6-8',
        'category': 'toys',
        'trending_score': 97,
    },
    {
        'title': 'National Geographic Break Open Geodes Kit',
        'description': 'Discover crystals inside real geodes with this hands-on science kit.',
        'image_url': 'https://m.media-amazon.com/images/I/81vKM+z1ZcL._AC_SL1500_.jpg',
        'price': 29.99,
        'product_url': 'https://www.amazon.com/dp/B016LNFGXY',
        'age_range': '6-8',
        'category': 'toys',
        'trending_score': 93,
    },
    {
        'title': 'Crayola Inspiration Art Case',
        'description': '140 art supplies including crayons, colored pencils, and markers in a portable case.',
        'image_url': 'https://m.media-amazon.com/images/I/91J6gsYvOaL._AC_SL1500_.jpg',
        'price': 34.99,
        'product_url': 'https://www.amazon.com/dp/B00UNBONZE',
        'age_range': '6-8',
        'category': 'arts-crafts',
        'trending_score': 91,
    },
    # 9-12
    {
        'title': 'LEGO Technic McLaren Formula 1 Race Car',
        'description': 'Build an authentic F1 car model with working features.',
        'image_url': 'https://m.media-amazon.com/images/I/81XHST-IOML._AC_SL1500_.jpg',
        'price': 179.99,
        'product_url': 'https://www.amazon.com/dp/B09R25T1JZ',
        'age_range': '9-12',
        'category': 'toys',
        'trending_score': 96,
    },
    {
        'title': 'Nintendo Switch Lite',
        'description': 'Portable gaming console perfect for playing on the go.',
        'image_url': 'https://m.media-amazon.com/images/I/71d-XrP9y5L._SL1500_.jpg',
        'price': 199.99,
        'product_url': 'https://www.amazon.com/dp/B092VT1JGD',
        'age_range': '9-12',
        'category': 'electronics',
        'trending_score': 99,
    },
    {
        'title': 'Klutz LEGO Chain Reactions Craft Kit',
        'description': 'Build 10 amazing moving machines with LEGO bricks and paper.',
        'image_url': 'https://m.media-amazon.com/images/I/91TqnwclZRL._AC_SL1500_.jpg',
        'price': 21.99,
        'product_url': 'https://www.amazon.com/dp/0545703301',
        'age_range': '9-12',
        'category': 'toys',
        'trending_score': 88,
    },
    # 13-18
    {
        'title': 'Apple AirPods Pro (2nd Generation)',
        'description': 'Premium wireless earbuds with active noise cancellation.',
        'image_url': 'https://m.media-amazon.com/images/I/61SUj2aKoEL._AC_SL1500_.jpg',
        'price': 249.99,
        'product_url': 'https://www.amazon.com/dp/B0CHWRXH8B',
        'age_range': '13-18',
        'category': 'electronics',
        'trending_score': 98,
    },
    {
        'title': 'Polaroid Now+ Gen 2 Instant Camera',
        'description': 'Creative instant camera with Bluetooth connectivity and lens filters.',
        'image_url': 'https://m.media-amazon.com/images/I/71gE+BbvUiL._AC_SL1500_.jpg',
        'price': 149.99,
        'product_url': 'https://www.amazon.com/dp/B0BZRZ4YQV',
        'age_range': '13-18',
        'category': 'electronics',
        'trending_score': 94,
    },
    {
        'title': 'Hydro Flask Water Bottle 32 oz',
        'description': 'Insulated stainless steel water bottle in trendy colors.',
        'image_url': 'https://m.media-amazon.com/images/I/51xplWVmW-L._AC_SL1000_.jpg',
        'price': 44.95,
        'product_url': 'https://www.amazon.com/dp/B083GD2Y8M',
        'age_range': '13-18',
        'category': 'other',
        'trending_score': 92,
    },
]


class TrendingService:
    def __init__(self, database_configured=True, scraper=None, batch_limit=10):
        self.database_configured = database_configured
        self.scrape = scraper or scrape_product
        self.batch_limit = batch_limit
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config):
        timeout = config.get('SCRAPE_TIMEOUT', 15)
        return cls(
            database_configured=config.get('DATABASE_CONFIGURED', False),
            scraper=lambda url: scrape_product(url, timeout=timeout),
            batch_limit=config.get('SCRAPE_BATCH_LIMIT', 10),
        )

    def list(self, age_range=None, category=None, limit=12):
        """Return ``(gifts, source)`` where source is ``database`` or ``curated``."""
        if self.database_configured:
            query = TrendingGift.query
            if age_range:
                query = query.filter_by(age_range=age_range)
            if category:
                query = query.filter_by(category=category)
            try:
                rows = query.order_by(TrendingGift.trending_score.desc()).limit(limit).all()
            except SQLAlchemyError as e:
                db.session.rollback()
                self.logger.error(f"Trending lookup failed, serving curated list: {str(e)}")
                rows = []
            if rows:
                return [row.to_dict() for row in rows], 'database'

        return self.curated(age_range, category, limit), 'curated'

    @staticmethod
    def curated(age_range=None, category=None, limit=12):
        gifts = [g for g in CURATED_TRENDING_GIFTS
                 if (not age_range or g['age_range'] == age_range)
                 and (not category or g['category'] == category)]
        gifts = sorted(gifts, key=lambda g: g['trending_score'], reverse=True)[:limit]

        now = isoformat(utcnow())
        result = []
        for index, gift in enumerate(gifts):
            product = add_affiliate_link(ScrapedProduct(
                title=gift['title'],
                description=gift['description'],
                image_url=gift['image_url'],
                price=gift['price'],
                currency='USD',
                retailer='amazon',
                asin=None,
                original_url=gift['product_url'],
            ))
            result.append({
                **gift,
                'id': f"curated-{gift['age_range']}-{index}",
                'currency': 'USD',
                'retailer': 'amazon',
                'source': 'manual',
                'affiliate_url': product.affiliate_url,
                'created_at': now,
                'updated_at': now,
            })
        return result

    def add_from_urls(self, urls, age_range, category=None):
        """Scrape ``urls`` one after another and store them.

        Returns ``(saved, errors)``; a failing URL never stops the batch.
        """
        self.require_database()
        if not isinstance(urls, list) or not urls:
            raise BadRequest('URLs array is required')
        if not age_range:
            raise BadRequest('age_range is required')
        if age_range not in AGE_RANGES:
            raise BadRequest(f"Invalid age_range. Must be one of: {', '.join(AGE_RANGES)}")

        saved, errors = [], []
        for url in urls[:self.batch_limit]:
            if not is_valid_url(url):
                errors.append(f'Failed to scrape {url}: invalid URL')
                continue

            product = add_affiliate_link(self.scrape(url))
            gift = TrendingGift(
                title=product.title or 'Unknown Product',
                description=product.description,
                image_url=product.image_url,
                price=product.price,
                currency=product.currency,
                product_url=product.original_url,
                affiliate_url=product.affiliate_url,
                retailer=product.retailer,
                age_range=age_range,
                category=category or 'other',
                source='manual',
                trending_score=50,
            )
            try:
                db.session.add(gift)
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                errors.append(f'Failed to save {url}: {str(e)}')
                continue
            saved.append(gift)

        self.logger.info(f"Added {len(saved)} trending gifts ({len(errors)} errors)")
        return saved, errors

    def seed_curated(self, age_range=None):
        """Insert curated gifts whose product URL is not stored yet."""
        self.require_database()
        gifts = [g for g in CURATED_TRENDING_GIFTS
                 if not age_range or g['age_range'] == age_range]

        inserted = []
        for gift in gifts:
            if TrendingGift.query.filter_by(product_url=gift['product_url']).first():
                continue
            row = TrendingGift(**gift, source='manual', currency='USD', retailer='amazon')
            db.session.add(row)
            inserted.append(row)
        db.session.commit()

        if age_range:
            terms = AGE_SEARCH_TERMS.get(age_range, [])
        else:
            terms = [term for values in AGE_SEARCH_TERMS.values() for term in values]
        return inserted, terms[:5]

    def require_database(self):
        if not self.database_configured:
            raise ServiceUnavailable('Database not configured')
