import logging

from giddylist import db
from giddylist.errors import BadRequest, Forbidden, NotFound, Unauthorized
from giddylist.models import GiftClaim, Kid, Registry, RegistryItem, WishlistItem
from giddylist.models.base import utcnow
from giddylist.models.registry import CLAIM_TYPES
from giddylist.services.notification_service import notify
from giddylist.utils import clean_text, generate_slug, parse_date


class RegistryService:
    BOOLEAN_FLAGS = ('is_public', 'show_prices', 'show_purchased', 'allow_anonymous_claims')

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    # -- registries -------------------------------------------------------

    def list_for_user(self, user_id):
        return (Registry.query
                .filter_by(user_id=user_id)
                .order_by(Registry.created_at.desc())
                .all())

    def create(self, user_id, data):
        name = clean_text(data.get('name'))
        if not name:
            raise BadRequest('Name is required')

        slug = clean_text(data.get('slug')) or generate_slug(name)
        if Registry.query.filter_by(slug=slug).first():
            slug = generate_slug(name)

        kid_id = data.get('kid_id') or None
        if kid_id:
            self._require_own_kid(user_id, kid_id)

        registry = Registry(
            user_id=user_id,
            name=name,
            slug=slug,
            kid_id=kid_id,
            description=clean_text(data.get('description')),
            occasion=clean_text(data.get('occasion')),
            event_date=parse_date(data.get('event_date')),
            cover_image_url=data.get('cover_image_url') or None,
            is_public=self._flag(data, 'is_public', True),
            show_prices=self._flag(data, 'show_prices', True),
            show_purchased=self._flag(data, 'show_purchased', False),
            allow_anonymous_claims=self._flag(data, 'allow_anonymous_claims', True),
        )
        db.session.add(registry)
        db.session.commit()
        self.logger.info(f"Created registry {registry.slug} for {user_id}")
        return registry

    def update(self, user_id, slug, data):
        registry = self._get_owned(user_id, slug)

        if 'name' in data:
            name = clean_text(data.get('name'))
            if not name:
                raise BadRequest('Name is required')
            registry.name = name
        if 'description' in data:
            registry.description = clean_text(data.get('description'))
        if 'occasion' in data:
            registry.occasion = clean_text(data.get('occasion'))
        if 'event_date' in data:
            registry.event_date = parse_date(data.get('event_date'))
        if 'cover_image_url' in data:
            registry.cover_image_url = data.get('cover_image_url') or None
        if 'kid_id' in data:
            kid_id = data.get('kid_id') or None
            if kid_id:
                self._require_own_kid(user_id, kid_id)
            registry.kid_id = kid_id
        for flag in self.BOOLEAN_FLAGS:
            if flag in data:
                setattr(registry, flag, bool(data[flag]))

        db.session.commit()
        return registry

    def delete(self, user_id, slug):
        registry = Registry.query.filter_by(slug=slug, user_id=user_id).first()
        if registry:
            GiftClaim.query.filter_by(registry_id=registry.id).delete()
            db.session.delete(registry)
            db.session.commit()

    # -- items ------------------------------------------------------------

    def add_items(self, user_id, slug, wishlist_ids):
        registry = self._get_owned(user_id, slug)
        if not wishlist_ids:
            raise BadRequest('wishlist_ids is required')

        existing = {item.wishlist_id for item in registry.items}
        next_order = max((item.display_order for item in registry.items), default=-1) + 1
        added = []
        for wishlist_id in wishlist_ids:
            if wishlist_id in existing:
                continue
            wishlist_item = WishlistItem.query.filter_by(id=wishlist_id, user_id=user_id).first()
            if not wishlist_item:
                raise NotFound(f'Wishlist item not found: {wishlist_id}')
            registry_item = RegistryItem(
                registry_id=registry.id,
                wishlist_id=wishlist_id,
                display_order=next_order,
            )
            db.session.add(registry_item)
            added.append(registry_item)
            existing.add(wishlist_id)
            next_order += 1

        db.session.commit()
        return added

    def remove_item(self, user_id, slug, wishlist_id):
        registry = self._get_owned(user_id, slug)
        removed = (RegistryItem.query
                   .filter_by(registry_id=registry.id, wishlist_id=wishlist_id)
                   .delete())
        db.session.commit()
        if not removed:
            raise NotFound('Item not found in registry')

    # -- public view ------------------------------------------------------

    def get_view(self, slug, viewer_id=None):
        """Registry as seen by ``viewer_id``; private registries look absent."""
        registry = Registry.query.filter_by(slug=slug).first()
        if not registry:
            raise NotFound('Registry not found')

        is_owner = viewer_id is not None and viewer_id == registry.user_id
        if not registry.is_public and not is_owner:
            raise NotFound('Registry not found')

        items = []
        for registry_item in registry.items:
            wishlist_item = registry_item.wishlist_item
            if wishlist_item is None:
                continue
            item = wishlist_item.to_dict()
            item['display_order'] = registry_item.display_order
            if not registry.show_prices and not is_owner:
                item['price'] = None
            items.append(item)

        if not is_owner and not registry.show_purchased:
            items = [item for item in items if item['status'] != 'purchased']

        claims = []
        if is_owner and items:
            wishlist_ids = [item['id'] for item in items]
            claims = [claim.to_dict() for claim in
                      GiftClaim.query.filter(GiftClaim.wishlist_id.in_(wishlist_ids)).all()]

        payload = registry.to_dict()
        payload['items'] = items
        stats = self.progress(items)
        return {
            'registry': payload,
            'isOwner': is_owner,
            'claims': claims,
            **stats,
        }

    @staticmethod
    def progress(items):
        total = len(items)
        claimed = sum(1 for item in items if item['status'] in ('reserved', 'purchased'))
        return {
            'totalItems': total,
            'claimedCount': claimed,
            'progressPercent': (claimed / total) * 100 if total else 0,
        }

    # -- claims -----------------------------------------------------------

    def claim(self, slug, data, user_id=None):
        wishlist_id = data.get('wishlist_id')
        if not wishlist_id:
            raise BadRequest('Wishlist item ID is required')

        claim_type = data.get('claim_type') or 'reserved'
        if claim_type not in CLAIM_TYPES:
            raise BadRequest(f"claim_type must be one of: {', '.join(CLAIM_TYPES)}")

        registry = Registry.query.filter_by(slug=slug).first()
        if not registry or not registry.is_public:
            raise NotFound('Registry not found')

        registry_item = RegistryItem.query.filter_by(
            registry_id=registry.id,
            wishlist_id=wishlist_id
        ).first()
        if not registry_item:
            raise NotFound('Item not found in registry')

        wishlist_item = db.session.get(WishlistItem, wishlist_id)
        if not wishlist_item:
            raise NotFound('Wishlist item not found')

        try:
            requested_qty = int(data.get('quantity') or 1)
        except (TypeError, ValueError):
            raise BadRequest('quantity must be an integer')
        if requested_qty < 1:
            raise BadRequest('quantity must be at least 1')
        if wishlist_item.quantity_available < requested_qty:
            raise BadRequest('Not enough quantity available')

        guest_name = clean_text(data.get('guest_name'))
        if not user_id:
            if not registry.allow_anonymous_claims:
                raise Unauthorized('Login required to claim items')
            if not guest_name:
                raise BadRequest('Name is required')

        claim = GiftClaim(
            wishlist_id=wishlist_id,
            registry_id=registry.id,
            user_id=user_id,
            guest_name=guest_name,
            guest_email=clean_text(data.get('guest_email')),
            claim_type=claim_type,
            quantity=requested_qty,
            note=clean_text(data.get('note')),
            purchased_at=utcnow() if claim_type == 'purchased' else None,
        )
        db.session.add(claim)

        wishlist_item.quantity_claimed = (wishlist_item.quantity_claimed or 0) + requested_qty
        if wishlist_item.status != 'purchased':
            wishlist_item.status = claim_type

        notify(
            registry.user_id,
            'claim',
            f"Someone {claim_type} a gift from {registry.name}",
            message=wishlist_item.title,
            data={'registry_id': registry.id, 'wishlist_id': wishlist_id},
        )
        db.session.commit()
        self.logger.info(f"Item {wishlist_id} {claim_type} in registry {registry.slug}")
        return claim

    def remove_claim(self, slug, claim_id, user_id):
        claim = db.session.get(GiftClaim, claim_id) if claim_id else None
        if not claim:
            raise NotFound('Claim not found')

        registry = Registry.query.filter_by(slug=slug).first()
        is_owner = registry is not None and registry.user_id == user_id
        is_claimer = claim.user_id is not None and claim.user_id == user_id
        if not is_owner and not is_claimer:
            raise Forbidden('Unauthorized')

        wishlist_id = claim.wishlist_id
        db.session.delete(claim)
        db.session.flush()
        self._recompute_item(wishlist_id)
        db.session.commit()

    def _recompute_item(self, wishlist_id):
        wishlist_item = db.session.get(WishlistItem, wishlist_id)
        if not wishlist_item:
            return
        remaining = GiftClaim.query.filter_by(wishlist_id=wishlist_id).all()
        wishlist_item.quantity_claimed = sum(claim.quantity for claim in remaining)
        claim_types = {claim.claim_type for claim in remaining}
        if 'purchased' in claim_types:
            wishlist_item.status = 'purchased'
        elif 'reserved' in claim_types:
            wishlist_item.status = 'reserved'
        else:
            wishlist_item.status = 'available'

    # -- helpers ----------------------------------------------------------

    def _get_owned(self, user_id, slug):
        registry = Registry.query.filter_by(slug=slug).first()
        if not registry:
            raise NotFound('Registry not found')
        if registry.user_id != user_id:
            raise Forbidden('Unauthorized')
        return registry

    @staticmethod
    def _require_own_kid(user_id, kid_id):
        if not Kid.query.filter_by(id=kid_id, user_id=user_id).first():
            raise NotFound('Kid not found')

    @staticmethod
    def _flag(data, key, default):
        value = data.get(key)
        return default if value is None else bool(value)
