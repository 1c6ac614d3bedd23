from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, new_id


class Product(TimestampMixin, db.Model):
    __tablename__ = 'products'

    # Fields an admin may change through the API
    UPDATABLE_FIELDS = (
        'title', 'description', 'image_url', 'price', 'original_url',
        'affiliate_url', 'retailer', 'age_range', 'category', 'brand',
        'rating', 'review_count', 'is_active', 'asin',
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    asin = db.Column(db.String(10), unique=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(2000))
    price = db.Column(db.Float)
    original_url = db.Column(db.String(2000), nullable=False)
    affiliate_url = db.Column(db.String(2000))
    retailer = db.Column(db.String(20), default='amazon')
    age_range = db.Column(db.String(10))
    category = db.Column(db.String(20))
    brand = db.Column(db.String(200))
    rating = db.Column(db.Float)
    review_count = db.Column(db.Integer)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_scraped_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'asin': self.asin,
            'title': self.title,
            'description': self.description,
            'image_url': self.image_url,
            'price': self.price,
            'original_url': self.original_url,
            'affiliate_url': self.affiliate_url,
            'retailer': self.retailer,
            'age_range': self.age_range,
            'category': self.category,
            'brand': self.brand,
            'rating': self.rating,
            'review_count': self.review_count,
            'is_active': self.is_active,
            'last_scraped_at': isoformat(self.last_scraped_at),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class TrendingGift(TimestampMixin, db.Model):
    __tablename__ = 'trending_gifts'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    image_url = db.Column(db.String(2000))
    price = db.Column(db.Float)
    currency = db.Column(db.String(3), default='USD', nullable=False)
    product_url = db.Column(db.String(2000), nullable=False)
    affiliate_url = db.Column(db.String(2000))
    retailer = db.Column(db.String(20))
    age_range = db.Column(db.String(10), nullable=False)
    category = db.Column(db.String(20))
    source = db.Column(db.String(20), default='manual', nullable=False)  # amazon, google, social, manual
    trending_score = db.Column(db.Integer, default=50, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'image_url': self.image_url,
            'price': self.price,
            'currency': self.currency,
            'product_url': self.product_url,
            'affiliate_url': self.affiliate_url,
            'retailer': self.retailer,
            'age_range': self.age_range,
            'category': self.category,
            'source': self.source,
            'trending_score': self.trending_score,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
