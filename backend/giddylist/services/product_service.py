import logging
import time
from datetime import timedelta

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from giddylist import db
from giddylist.errors import BadRequest, Conflict, NotFound
from giddylist.models import Product
from giddylist.models.base import utcnow
from giddylist.services.affiliate import add_affiliate_link
from giddylist.services.scraper import RETAILERS, is_valid_url, normalize_url, scrape_product
from giddylist.utils import clean_text


class ProductService:
    def __init__(self, scraper=None):
        self.scrape = scraper or self._default_scrape
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _default_scrape(url):
        return scrape_product(url, timeout=current_app.config.get('SCRAPE_TIMEOUT', 15))

    def list(self, age_range=None, category=None, retailer=None, active_only=True,
             limit=50, offset=0):
        query = Product.query
        if active_only:
            query = query.filter_by(is_active=True)
        if age_range:
            query = query.filter_by(age_range=age_range)
        if category:
            query = query.filter_by(category=category)
        if retailer:
            query = query.filter_by(retailer=retailer)

        total = query.count()
        products = (query
                    .order_by(Product.created_at.desc())
                    .offset(offset)
                    .limit(limit)
                    .all())
        return products, total

    def create(self, data):
        title = clean_text(data.get('title'))
        original_url = clean_text(data.get('original_url'))
        if not title:
            raise BadRequest('Title is required')
        if not original_url:
            raise BadRequest('Original URL is required')

        asin = data.get('asin') or None
        if asin:
            existing = Product.query.filter_by(asin=asin).first()
            if existing:
                raise Conflict('Product with this ASIN already exists', existing_id=existing.id)

        retailer = data.get('retailer') or 'amazon'
        if retailer not in RETAILERS:
            raise BadRequest(f"Invalid retailer. Must be one of: {', '.join(RETAILERS)}")

        product = Product(
            asin=asin,
            title=title,
            description=clean_text(data.get('description')),
            image_url=data.get('image_url') or None,
            price=data.get('price') or None,
            original_url=original_url,
            affiliate_url=data.get('affiliate_url') or None,
            retailer=retailer,
            age_range=data.get('age_range') or None,
            category=data.get('category') or None,
            brand=clean_text(data.get('brand')),
            rating=data.get('rating') or None,
            review_count=data.get('review_count') or None,
            is_active=True,
            last_scraped_at=utcnow(),
        )
        db.session.add(product)
        db.session.commit()
        return product

    def update(self, data):
        product_id = data.get('id')
        if not product_id:
            raise BadRequest('Product ID is required')

        changes = {k: data[k] for k in Product.UPDATABLE_FIELDS if k in data}
        if not changes:
            raise BadRequest('No valid fields to update')

        product = db.session.get(Product, product_id)
        if not product:
            raise NotFound('Product not found')

        for field, value in changes.items():
            setattr(product, field, value)
        db.session.commit()
        return product

    def deactivate(self, product_id):
        if not product_id:
            raise BadRequest('Product ID is required')
        product = db.session.get(Product, product_id)
        if product:
            product.is_active = False
            db.session.commit()

    def scrape_and_save(self, data):
        """Scrape a URL into the catalog, updating the row with the same ASIN.

        Returns ``(product, action)`` with action ``created`` or ``updated``.
        """
        url = data.get('url')
        if not url or not isinstance(url, str):
            raise BadRequest('URL is required')
        if not is_valid_url(url):
            raise BadRequest('Invalid URL format')

        scraped = add_affiliate_link(self.scrape(normalize_url(url)))
        age_range = data.get('age_range') or None
        category = data.get('category') or None
        brand = clean_text(data.get('brand'))

        existing = Product.query.filter_by(asin=scraped.asin).first() if scraped.asin else None
        if existing:
            existing.title = scraped.title or existing.title
            existing.description = scraped.description or existing.description
            existing.image_url = scraped.image_url or existing.image_url
            if scraped.price is not None:
                existing.price = scraped.price
            existing.affiliate_url = scraped.affiliate_url or existing.affiliate_url
            existing.last_scraped_at = utcnow()
            if age_range:
                existing.age_range = age_range
            if category:
                existing.category = category
            if brand:
                existing.brand = brand
            db.session.commit()
            self.logger.info(f"Refreshed product {existing.asin} from {url}")
            return existing, 'updated'

        product = Product(
            asin=scraped.asin,
            title=scraped.title or 'Untitled Product',
            description=scraped.description,
            image_url=scraped.image_url,
            price=scraped.price,
            original_url=scraped.original_url,
            affiliate_url=scraped.affiliate_url,
            retailer=scraped.retailer,
            age_range=age_range,
            category=category,
            brand=brand,
            is_active=True,
            last_scraped_at=utcnow(),
        )
        db.session.add(product)
        db.session.commit()
        self.logger.info(f"Created product {product.id} from {url}")
        return product, 'created'

    def refresh_stale(self, limit=50, max_age_days=7, delay=0.5):
        """Re-scrape active products not scraped within ``max_age_days``.

        A product whose page comes back with neither title nor price is
        deactivated. Fields that come back empty keep their stored values.
        """
        cutoff = utcnow() - timedelta(days=max_age_days)
        stale = (Product.query
                 .filter(Product.is_active.is_(True))
                 .filter(or_(Product.last_scraped_at.is_(None),
                             Product.last_scraped_at < cutoff))
                 .order_by(Product.created_at)
                 .limit(limit)
                 .all())
        summary = {'total': len(stale), 'updated': 0, 'failed': 0, 'deactivated': 0,
                   'errors': []}
        if not stale:
            self.logger.info("No products need refreshing")
            return summary

        self.logger.info(f"Found {len(stale)} products to refresh")
        for index, product in enumerate(stale):
            if delay and index:
                time.sleep(delay)
            product_id = product.id
            try:
                scraped = add_affiliate_link(self.scrape(product.original_url))
                if not scraped.title and scraped.price is None:
                    product.is_active = False
                    product.last_scraped_at = utcnow()
                    db.session.commit()
                    summary['deactivated'] += 1
                    self.logger.info(f"Deactivated unavailable product: {product_id}")
                    continue

                product.title = scraped.title or product.title
                product.description = scraped.description or product.description
                product.image_url = scraped.image_url or product.image_url
                if scraped.price is not None:
                    product.price = scraped.price
                product.affiliate_url = scraped.affiliate_url or product.affiliate_url
                product.last_scraped_at = utcnow()
                db.session.commit()
                summary['updated'] += 1
            except SQLAlchemyError as e:
                db.session.rollback()
                summary['failed'] += 1
                summary['errors'].append({'productId': product_id, 'error': str(e)})
                self.logger.error(f"Failed to refresh product {product_id}: {str(e)}")
                self._touch(product_id)

        self.logger.info(
            f"Weekly refresh complete: {summary['updated']} updated, "
            f"{summary['failed']} failed, {summary['deactivated']} deactivated"
        )
        summary['errors'] = summary['errors'][:10]
        return summary

    def _touch(self, product_id):
        # Failed rows still get a scrape timestamp
        try:
            Product.query.filter_by(id=product_id).update({'last_scraped_at': utcnow()})
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.logger.error(f"Could not stamp product {product_id}: {str(e)}")
