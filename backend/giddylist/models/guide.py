from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, new_id

GUIDE_STATUSES = ('draft', 'published', 'archived')


class GiftGuide(TimestampMixin, db.Model):
    __tablename__ = 'gift_guides'

    UPDATABLE_FIELDS = (
        'title', 'meta_description', 'intro_content', 'occasion',
        'age_range', 'category', 'keywords', 'cover_image_url', 'status',
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    slug = db.Column(db.String(150), unique=True, nullable=False)
    title = db.Column(db.String(300), nullable=False)
    meta_description = db.Column(db.String(500))
    intro_content = db.Column(db.Text)
    occasion = db.Column(db.String(100))
    age_range = db.Column(db.String(10))
    category = db.Column(db.String(20))
    keywords = db.Column(db.JSON, default=list)
    cover_image_url = db.Column(db.String(2000))
    status = db.Column(db.String(20), default='draft', nullable=False)
    view_count = db.Column(db.Integer, default=0, nullable=False)
    published_at = db.Column(db.DateTime)

    products = db.relationship('GiftGuideProduct', cascade='all, delete-orphan', backref='guide',
                               order_by='GiftGuideProduct.display_order')

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'meta_description': self.meta_description,
            'intro_content': self.intro_content,
            'occasion': self.occasion,
            'age_range': self.age_range,
            'category': self.category,
            'keywords': self.keywords or [],
            'cover_image_url': self.cover_image_url,
            'status': self.status,
            'view_count': self.view_count,
            'published_at': isoformat(self.published_at),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class GiftGuideProduct(db.Model):
    __tablename__ = 'gift_guide_products'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    guide_id = db.Column(db.String(36), db.ForeignKey('gift_guides.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey('products.id', ondelete='CASCADE'),
                           nullable=False)
    display_order = db.Column(db.Integer, default=0, nullable=False)
    ai_description = db.Column(db.Text)
    highlight_reason = db.Column(db.String(300))

    product = db.relationship('Product')

    def to_dict(self):
        data = self.product.to_dict() if self.product else {'id': self.product_id}
        data.update({
            'ai_description': self.ai_description,
            'highlight_reason': self.highlight_reason,
            'display_order': self.display_order,
        })
        return data


class GuideGenerationLog(TimestampMixin, db.Model):
    __tablename__ = 'guide_generation_logs'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    topic_type = db.Column(db.String(20), nullable=False)
    topic_params = db.Column(db.JSON)
    status = db.Column(db.String(20), default='started', nullable=False)
    guide_id = db.Column(db.String(36), db.ForeignKey('gift_guides.id', ondelete='SET NULL'))
    tokens_used = db.Column(db.Integer)
    error_message = db.Column(db.Text)

    def to_dict(self):
        return {
            'id': self.id,
            'topic_type': self.topic_type,
            'topic_params': self.topic_params,
            'status': self.status,
            'guide_id': self.guide_id,
            'tokens_used': self.tokens_used,
            'error_message': self.error_message,
            'created_at': isoformat(self.created_at),
        }
