from giddylist import db
from giddylist.models.base import isoformat, new_id, utcnow

NOTIFICATION_TYPES = ('follow', 'claim', 'thank_you', 'collection_like')


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text)
    data = db.Column(db.JSON)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'data': self.data,
            'is_read': self.is_read,
            'created_at': isoformat(self.created_at),
        }


class AffiliateClick(db.Model):
    __tablename__ = 'affiliate_clicks'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    guide_id = db.Column(db.String(36), nullable=False, index=True)
    visitor_id = db.Column(db.String(32))
    source_type = db.Column(db.String(30), default='collection', nullable=False)
    source_id = db.Column(db.String(36))
    product_url = db.Column(db.String(2000), nullable=False)
    retailer = db.Column(db.String(100))
    ip_hash = db.Column(db.String(16))
    user_agent = db.Column(db.String(500))
    referer = db.Column(db.String(2000))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
