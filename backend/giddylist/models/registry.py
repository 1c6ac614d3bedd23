from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, new_id, utcnow

CLAIM_TYPES = ('reserved', 'purchased')


class Registry(TimestampMixin, db.Model):
    __tablename__ = 'registries'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    kid_id = db.Column(db.String(36), db.ForeignKey('kids.id', ondelete='SET NULL'))
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    occasion = db.Column(db.String(100))
    event_date = db.Column(db.Date)
    cover_image_url = db.Column(db.String(500))
    is_public = db.Column(db.Boolean, default=True, nullable=False)
    show_prices = db.Column(db.Boolean, default=True, nullable=False)
    show_purchased = db.Column(db.Boolean, default=False, nullable=False)
    allow_anonymous_claims = db.Column(db.Boolean, default=True, nullable=False)

    kid = db.relationship('Kid')
    items = db.relationship('RegistryItem', cascade='all, delete-orphan', backref='registry',
                            order_by='RegistryItem.display_order')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'kid_id': self.kid_id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'occasion': self.occasion,
            'event_date': isoformat(self.event_date),
            'cover_image_url': self.cover_image_url,
            'is_public': self.is_public,
            'show_prices': self.show_prices,
            'show_purchased': self.show_purchased,
            'allow_anonymous_claims': self.allow_anonymous_claims,
            'kids': {'id': self.kid.id, 'name': self.kid.name} if self.kid else None,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class RegistryItem(db.Model):
    __tablename__ = 'registry_items'
    __table_args__ = (db.UniqueConstraint('registry_id', 'wishlist_id'),)

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    registry_id = db.Column(db.String(36), db.ForeignKey('registries.id', ondelete='CASCADE'),
                            nullable=False)
    wishlist_id = db.Column(db.String(36), db.ForeignKey('wishlists.id', ondelete='CASCADE'),
                            nullable=False)
    display_order = db.Column(db.Integer, default=0, nullable=False)

    wishlist_item = db.relationship('WishlistItem')

    def to_dict(self):
        return {
            'id': self.id,
            'registry_id': self.registry_id,
            'wishlist_id': self.wishlist_id,
            'display_order': self.display_order,
        }


class GiftClaim(db.Model):
    __tablename__ = 'gift_claims'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    wishlist_id = db.Column(db.String(36), db.ForeignKey('wishlists.id', ondelete='CASCADE'),
                            nullable=False, index=True)
    registry_id = db.Column(db.String(36), db.ForeignKey('registries.id', ondelete='CASCADE'))
    user_id = db.Column(db.String(36))
    guest_name = db.Column(db.String(100))
    guest_email = db.Column(db.String(200))
    claim_type = db.Column(db.String(20), default='reserved', nullable=False)
    quantity = db.Column(db.Integer, default=1, nullable=False)
    note = db.Column(db.Text)
    claimed_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    purchased_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'wishlist_id': self.wishlist_id,
            'registry_id': self.registry_id,
            'user_id': self.user_id,
            'guest_name': self.guest_name,
            'guest_email': self.guest_email,
            'claim_type': self.claim_type,
            'quantity': self.quantity,
            'note': self.note,
            'claimed_at': isoformat(self.claimed_at),
            'purchased_at': isoformat(self.purchased_at),
        }
