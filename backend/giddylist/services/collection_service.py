import logging

from giddylist import db
from giddylist.errors import BadRequest, Forbidden, NotFound
from giddylist.models import Collection, CollectionItem, CreatorProfile, WishlistItem
from giddylist.models.collection import AGE_RANGES, CATEGORIES
from giddylist.utils import clean_text, generate_slug


class CollectionService:
    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def list_public(self, age_range=None, category=None, limit=20, offset=0):
        query = Collection.query.filter_by(is_public=True)
        if age_range:
            query = query.filter_by(age_range=age_range)
        if category:
            query = query.filter_by(category=category)
        total = query.count()
        collections = (query
                       .order_by(Collection.view_count.desc(), Collection.created_at.desc())
                       .offset(offset)
                       .limit(limit)
                       .all())
        return collections, total

    def create(self, user_id, data):
        title = clean_text(data.get('title'))
        if not title:
            raise BadRequest('Title is required')
        age_range = self._choice(data.get('age_range'), AGE_RANGES, 'age_range')
        category = self._choice(data.get('category'), CATEGORIES, 'category')

        slug = clean_text(data.get('slug')) or generate_slug(title)
        if Collection.query.filter_by(slug=slug).first():
            slug = generate_slug(title)

        tags = data.get('tags') or []
        if not isinstance(tags, list):
            raise BadRequest('tags must be a list')

        collection = Collection(
            user_id=user_id,
            title=title,
            slug=slug,
            description=clean_text(data.get('description')),
            cover_image_url=data.get('cover_image_url') or None,
            age_range=age_range,
            category=category,
            tags=[t for t in (clean_text(t) for t in tags) if t],
            is_public=data.get('is_public', True) is not False,
        )
        db.session.add(collection)
        db.session.commit()
        return collection

    def get_view(self, slug, viewer_id=None):
        collection = Collection.query.filter_by(slug=slug).first()
        is_owner = collection is not None and collection.user_id == viewer_id
        if not collection or (not collection.is_public and not is_owner):
            raise NotFound('Collection not found')

        if not is_owner:
            collection.view_count = (collection.view_count or 0) + 1
            db.session.commit()

        creator = db.session.get(CreatorProfile, collection.user_id)
        payload = collection.to_dict(include_items=True)
        payload['creator'] = creator.to_dict() if creator and creator.is_public else None
        return {'collection': payload, 'isOwner': is_owner}

    def add_item(self, user_id, slug, data):
        collection = self._get_owned(user_id, slug)

        wishlist_id = data.get('wishlist_id') or None
        product_url = data.get('product_url') or None
        if not wishlist_id and not product_url:
            raise BadRequest('Either wishlist_id or product_url is required')

        item = CollectionItem(
            collection_id=collection.id,
            caption=clean_text(data.get('caption')),
        )
        if wishlist_id:
            wishlist_item = WishlistItem.query.filter_by(id=wishlist_id, user_id=user_id).first()
            if not wishlist_item:
                raise NotFound('Wishlist item not found')
            item.wishlist_id = wishlist_item.id
            item.product_url = wishlist_item.affiliate_url or wishlist_item.url
            item.product_title = wishlist_item.title
            item.product_image_url = wishlist_item.image_url
            item.product_price = wishlist_item.price
        else:
            item.product_url = product_url
            item.product_title = clean_text(data.get('product_title'))
            item.product_image_url = data.get('product_image_url') or None
            price = data.get('product_price')
            try:
                item.product_price = float(price) if price not in (None, '') else None
            except (TypeError, ValueError):
                raise BadRequest('product_price must be a number')

        if data.get('display_order') is not None:
            try:
                item.display_order = int(data['display_order'])
            except (TypeError, ValueError):
                raise BadRequest('display_order must be an integer')
        else:
            item.display_order = len(collection.items)

        db.session.add(item)
        if not collection.cover_image_url and item.product_image_url:
            collection.cover_image_url = item.product_image_url
        db.session.commit()
        return item

    def delete(self, user_id, slug):
        collection = self._get_owned(user_id, slug)
        db.session.delete(collection)
        db.session.commit()

    def _get_owned(self, user_id, slug):
        collection = Collection.query.filter_by(slug=slug).first()
        if not collection:
            raise NotFound('Collection not found')
        if collection.user_id != user_id:
            raise Forbidden('Unauthorized')
        return collection

    @staticmethod
    def _choice(value, allowed, name):
        if not value:
            return None
        if value not in allowed:
            raise BadRequest(f"Invalid {name}. Must be one of: {', '.join(allowed)}")
        return value
