import logging

from flask import current_app

from giddylist import db
from giddylist.errors import BadRequest, NotFound
from giddylist.models import (CollectionItem, GiftClaim, Kid, KidPreferences, KidSizes,
                              Registry, RegistryItem, WishlistItem)
from giddylist.models.base import utcnow
from giddylist.services.affiliate import add_affiliate_link, create_affiliate_url
from giddylist.services.scraper import (detect_retailer, extract_asin, is_valid_url,
                                        normalize_url, parse_price, scrape_product)
from giddylist.utils import clean_text, parse_date


class WishlistService:
    def __init__(self, scraper=None):
        self.scrape = scraper or self._default_scrape
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _default_scrape(url):
        return scrape_product(url, timeout=current_app.config.get('SCRAPE_TIMEOUT', 15))

    # -- kids -------------------------------------------------------------

    def list_kids(self, user_id):
        return Kid.query.filter_by(user_id=user_id).order_by(Kid.created_at).all()

    def create_kid(self, user_id, data):
        name = clean_text(data.get('name'))
        if not name:
            raise BadRequest('Name is required')
        kid = Kid(
            user_id=user_id,
            name=name,
            birthdate=parse_date(data.get('birthdate')),
            avatar_url=data.get('avatar_url') or None,
        )
        self._apply_details(kid, data)
        db.session.add(kid)
        db.session.commit()
        return kid

    def update_kid(self, user_id, kid_id, data):
        kid = self.get_kid(user_id, kid_id)
        if 'name' in data:
            name = clean_text(data.get('name'))
            if not name:
                raise BadRequest('Name is required')
            kid.name = name
        if 'birthdate' in data:
            kid.birthdate = parse_date(data.get('birthdate'))
        if 'avatar_url' in data:
            kid.avatar_url = data.get('avatar_url') or None
        self._apply_details(kid, data)
        db.session.commit()
        return kid

    def delete_kid(self, user_id, kid_id):
        kid = self.get_kid(user_id, kid_id)
        for item in kid.wishlist_items:
            self._detach_item(item.id)
        db.session.delete(kid)
        db.session.commit()

    def get_kid(self, user_id, kid_id):
        kid = Kid.query.filter_by(id=kid_id, user_id=user_id).first()
        if not kid:
            raise NotFound('Kid not found')
        return kid

    @staticmethod
    def _apply_details(kid, data):
        sizes = data.get('kid_sizes')
        if isinstance(sizes, dict):
            if kid.sizes is None:
                kid.sizes = KidSizes()
            for field in KidSizes.FIELDS:
                if field in sizes:
                    setattr(kid.sizes, field, clean_text(sizes.get(field)))

        preferences = data.get('kid_preferences')
        if isinstance(preferences, dict):
            if kid.preferences is None:
                kid.preferences = KidPreferences()
            for field in KidPreferences.LIST_FIELDS:
                if field in preferences:
                    values = preferences.get(field) or []
                    if not isinstance(values, list):
                        raise BadRequest(f'{field} must be a list')
                    setattr(kid.preferences, field,
                            [v for v in (clean_text(v) for v in values) if v])
            if 'notes' in preferences:
                kid.preferences.notes = clean_text(preferences.get('notes'))

    # -- wishlist items ---------------------------------------------------

    def list_items(self, user_id, kid_id):
        kid = self.get_kid(user_id, kid_id)
        return (kid.wishlist_items
                .order_by(WishlistItem.priority.desc(), WishlistItem.created_at)
                .all())

    def add_from_url(self, user_id, data):
        kid_id = data.get('kid_id')
        url = data.get('url')
        if not kid_id:
            raise BadRequest('kid_id is required')
        if not is_valid_url(url):
            raise BadRequest('A valid URL is required')
        self.get_kid(user_id, kid_id)

        product = add_affiliate_link(self.scrape(normalize_url(url)))
        item = WishlistItem(
            kid_id=kid_id,
            user_id=user_id,
            url=url,
            title=clean_text(data.get('title')) or product.title,
            notes=clean_text(data.get('notes')),
            image_url=product.image_url,
            description=product.description,
            price=product.price,
            currency=product.currency or 'USD',
            original_url=product.original_url,
            affiliate_url=product.affiliate_url,
            retailer=product.retailer,
            asin=product.asin,
            priority=self._int(data.get('priority'), 0),
            quantity=max(self._int(data.get('quantity'), 1), 1),
            last_scraped_at=utcnow(),
        )
        db.session.add(item)
        db.session.commit()
        self.logger.info(f"Added wishlist item {item.id} ({item.retailer}) for kid {kid_id}")
        return item

    def refresh(self, user_id, item_id):
        item = self.get_item(user_id, item_id)
        product = add_affiliate_link(self.scrape(normalize_url(item.url)))

        # Keep what we had when a field comes back empty
        item.title = product.title or item.title
        item.description = product.description or item.description
        item.image_url = product.image_url or item.image_url
        item.price = product.price if product.price is not None else item.price
        item.affiliate_url = product.affiliate_url or item.affiliate_url
        item.retailer = product.retailer
        item.asin = product.asin or item.asin
        item.last_scraped_at = utcnow()
        db.session.commit()
        return item

    def update_item(self, user_id, item_id, data):
        item = self.get_item(user_id, item_id)
        if 'title' in data:
            item.title = clean_text(data.get('title'))
        if 'notes' in data:
            item.notes = clean_text(data.get('notes'))
        if 'priority' in data:
            item.priority = self._int(data.get('priority'), 0)
        if 'quantity' in data:
            quantity = self._int(data.get('quantity'), 1)
            if quantity < max(item.quantity_claimed, 1):
                raise BadRequest('Quantity cannot be lower than the claimed quantity')
            item.quantity = quantity
        db.session.commit()
        return item

    def delete_item(self, user_id, item_id):
        item = self.get_item(user_id, item_id)
        self._detach_item(item.id)
        db.session.delete(item)
        db.session.commit()

    def add_external(self, user_id, data):
        """Insert an item the browser extension already scraped."""
        title = clean_text(data.get('title'))
        url = data.get('url')
        if not title or not url:
            raise BadRequest('Missing required fields: title, url')

        kid_id = data.get('kidId') or data.get('kid_id')
        registry_id = data.get('registryId') or data.get('registry_id')
        if not kid_id and not registry_id:
            raise BadRequest('Must provide either kidId or registryId')

        registry = None
        if registry_id:
            registry = Registry.query.filter_by(id=registry_id, user_id=user_id).first()
            if not registry:
                raise NotFound('Registry not found')
            kid_id = kid_id or registry.kid_id
        if kid_id:
            self.get_kid(user_id, kid_id)

        price = data.get('price')
        if isinstance(price, str):
            price = parse_price(price)
        elif price is not None:
            try:
                price = float(price)
            except (TypeError, ValueError):
                price = None

        retailer = detect_retailer(url)
        asin = extract_asin(url) if retailer == 'amazon' else None
        item = WishlistItem(
            kid_id=kid_id,
            user_id=user_id,
            url=url,
            title=title,
            image_url=data.get('image') or None,
            price=price,
            original_url=url,
            affiliate_url=create_affiliate_url(url, retailer, asin),
            retailer=retailer,
            asin=asin,
        )
        db.session.add(item)
        db.session.flush()

        if registry:
            next_order = max((ri.display_order for ri in registry.items), default=-1) + 1
            db.session.add(RegistryItem(registry_id=registry.id, wishlist_id=item.id,
                                        display_order=next_order))
        db.session.commit()
        return item

    def get_item(self, user_id, item_id):
        item = WishlistItem.query.filter_by(id=item_id, user_id=user_id).first()
        if not item:
            raise NotFound('Wishlist item not found')
        return item

    @staticmethod
    def _detach_item(item_id):
        RegistryItem.query.filter_by(wishlist_id=item_id).delete()
        GiftClaim.query.filter_by(wishlist_id=item_id).delete()
        CollectionItem.query.filter_by(wishlist_id=item_id).update({'wishlist_id': None})

    @staticmethod
    def _int(value, default):
        if value is None or value == '':
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise BadRequest(f'Expected an integer, got {value!r}')
