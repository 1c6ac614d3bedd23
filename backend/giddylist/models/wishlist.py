from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, new_id

WISHLIST_STATUSES = ('available', 'reserved', 'purchased')


class WishlistItem(TimestampMixin, db.Model):
    __tablename__ = 'wishlists'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    kid_id = db.Column(db.String(36), db.ForeignKey('kids.id', ondelete='CASCADE'), index=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    url = db.Column(db.String(2000), nullable=False)
    title = db.Column(db.String(500))
    notes = db.Column(db.Text)
    image_url = db.Column(db.String(2000))
    description = db.Column(db.Text)
    price = db.Column(db.Float)
    currency = db.Column(db.String(3), default='USD', nullable=False)
    original_url = db.Column(db.String(2000))
    affiliate_url = db.Column(db.String(2000))
    retailer = db.Column(db.String(20))
    asin = db.Column(db.String(10))
    status = db.Column(db.String(20), default='available', nullable=False)
    priority = db.Column(db.Integer, default=0, nullable=False)
    quantity = db.Column(db.Integer, default=1, nullable=False)
    quantity_claimed = db.Column(db.Integer, default=0, nullable=False)
    last_scraped_at = db.Column(db.DateTime)

    @property
    def quantity_available(self):
        return max((self.quantity or 0) - (self.quantity_claimed or 0), 0)

    def to_dict(self):
        return {
            'id': self.id,
            'kid_id': self.kid_id,
            'user_id': self.user_id,
            'url': self.url,
            'title': self.title,
            'notes': self.notes,
            'image_url': self.image_url,
            'description': self.description,
            'price': self.price,
            'currency': self.currency,
            'original_url': self.original_url,
            'affiliate_url': self.affiliate_url,
            'retailer': self.retailer,
            'asin': self.asin,
            'status': self.status,
            'priority': self.priority,
            'quantity': self.quantity,
            'quantity_claimed': self.quantity_claimed,
            'last_scraped_at': isoformat(self.last_scraped_at),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
