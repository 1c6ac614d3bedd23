from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, new_id


class Kid(TimestampMixin, db.Model):
    __tablename__ = 'kids'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    birthdate = db.Column(db.Date)
    avatar_url = db.Column(db.String(500))

    sizes = db.relationship('KidSizes', uselist=False, cascade='all, delete-orphan', backref='kid')
    preferences = db.relationship('KidPreferences', uselist=False, cascade='all, delete-orphan',
                                  backref='kid')
    wishlist_items = db.relationship('WishlistItem', cascade='all, delete-orphan', backref='kid',
                                     lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'birthdate': isoformat(self.birthdate),
            'avatar_url': self.avatar_url,
            'kid_sizes': self.sizes.to_dict() if self.sizes else None,
            'kid_preferences': self.preferences.to_dict() if self.preferences else None,
            'created_at': isoformat(self.created_at),
        }


class KidSizes(db.Model):
    __tablename__ = 'kid_sizes'

    FIELDS = ('clothing_top', 'clothing_bottom', 'shoe_size', 'pajamas', 'socks',
              'underwear_size', 'diaper_or_underwear', 'notes')

    kid_id = db.Column(db.String(36), db.ForeignKey('kids.id', ondelete='CASCADE'), primary_key=True)
    clothing_top = db.Column(db.String(50))
    clothing_bottom = db.Column(db.String(50))
    shoe_size = db.Column(db.String(50))
    pajamas = db.Column(db.String(50))
    socks = db.Column(db.String(50))
    underwear_size = db.Column(db.String(50))
    diaper_or_underwear = db.Column(db.String(50))
    notes = db.Column(db.Text)

    def to_dict(self):
        return {field: getattr(self, field) for field in self.FIELDS}


class KidPreferences(db.Model):
    __tablename__ = 'kid_preferences'

    LIST_FIELDS = ('interests', 'favorite_things', 'dislikes', 'allergies', 'colors')

    kid_id = db.Column(db.String(36), db.ForeignKey('kids.id', ondelete='CASCADE'), primary_key=True)
    interests = db.Column(db.JSON, default=list)
    favorite_things = db.Column(db.JSON, default=list)
    dislikes = db.Column(db.JSON, default=list)
    allergies = db.Column(db.JSON, default=list)
    colors = db.Column(db.JSON, default=list)
    notes = db.Column(db.Text)

    def to_dict(self):
        data = {field: getattr(self, field) or [] for field in self.LIST_FIELDS}
        data['notes'] = self.notes
        return data
