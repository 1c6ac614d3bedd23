from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, new_id, utcnow

AGE_RANGES = ('0-2', '3-5', '6-8', '9-12', '13-18')

CATEGORIES = ('toys', 'clothing', 'books', 'gear', 'room-decor', 'outdoor',
              'arts-crafts', 'electronics', 'sports', 'other')


class Collection(TimestampMixin, db.Model):
    __tablename__ = 'collections'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    cover_image_url = db.Column(db.String(500))
    age_range = db.Column(db.String(10))
    category = db.Column(db.String(20))
    tags = db.Column(db.JSON, default=list)
    is_public = db.Column(db.Boolean, default=True, nullable=False)
    view_count = db.Column(db.Integer, default=0, nullable=False)

    items = db.relationship('CollectionItem', cascade='all, delete-orphan', backref='collection',
                            order_by='CollectionItem.display_order')

    def to_dict(self, include_items=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'slug': self.slug,
            'description': self.description,
            'cover_image_url': self.cover_image_url,
            'age_range': self.age_range,
            'category': self.category,
            'tags': self.tags or [],
            'is_public': self.is_public,
            'view_count': self.view_count,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
        return data


class CollectionItem(db.Model):
    __tablename__ = 'collection_items'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    collection_id = db.Column(db.String(36), db.ForeignKey('collections.id', ondelete='CASCADE'),
                              nullable=False)
    wishlist_id = db.Column(db.String(36), db.ForeignKey('wishlists.id', ondelete='SET NULL'))
    product_url = db.Column(db.String(2000))
    product_title = db.Column(db.String(500))
    product_image_url = db.Column(db.String(2000))
    product_price = db.Column(db.Float)
    caption = db.Column(db.Text)
    display_order = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'collection_id': self.collection_id,
            'wishlist_id': self.wishlist_id,
            'product_url': self.product_url,
            'product_title': self.product_title,
            'product_image_url': self.product_image_url,
            'product_price': self.product_price,
            'caption': self.caption,
            'display_order': self.display_order,
            'created_at': isoformat(self.created_at),
        }
