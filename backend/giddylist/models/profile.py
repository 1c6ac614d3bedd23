from giddylist import db
from giddylist.models.base import TimestampMixin, isoformat, utcnow


class CreatorProfile(TimestampMixin, db.Model):
    __tablename__ = 'creator_profiles'

    # Same id as the identity service user
    id = db.Column(db.String(36), primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    display_name = db.Column(db.String(100))
    bio = db.Column(db.Text)
    avatar_url = db.Column(db.String(500))
    cover_image_url = db.Column(db.String(500))
    is_public = db.Column(db.Boolean, default=True, nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    total_followers = db.Column(db.Integer, default=0, nullable=False)

    # Guide monetization
    guide_enabled = db.Column(db.Boolean, default=False, nullable=False)
    guide_tier = db.Column(db.String(20), default='standard', nullable=False)
    guide_bio = db.Column(db.Text)
    instagram_handle = db.Column(db.String(100))
    tiktok_handle = db.Column(db.String(100))
    youtube_handle = db.Column(db.String(100))
    pending_earnings = db.Column(db.Float, default=0.0, nullable=False)
    available_earnings = db.Column(db.Float, default=0.0, nullable=False)
    lifetime_earnings = db.Column(db.Float, default=0.0, nullable=False)

    def to_dict(self, include_private=False):
        data = {
            'id': self.id,
            'username': self.username,
            'display_name': self.display_name,
            'bio': self.bio,
            'avatar_url': self.avatar_url,
            'cover_image_url': self.cover_image_url,
            'is_public': self.is_public,
            'total_followers': self.total_followers,
            'guide_enabled': self.guide_enabled,
            'guide_tier': self.guide_tier,
            'guide_bio': self.guide_bio,
            'instagram_handle': self.instagram_handle,
            'tiktok_handle': self.tiktok_handle,
            'youtube_handle': self.youtube_handle,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_private:
            data.update({
                'is_admin': self.is_admin,
                'pending_earnings': self.pending_earnings,
                'available_earnings': self.available_earnings,
                'lifetime_earnings': self.lifetime_earnings,
            })
        return data


class Follow(db.Model):
    __tablename__ = 'follows'

    follower_id = db.Column(db.String(36), db.ForeignKey('creator_profiles.id', ondelete='CASCADE'),
                            primary_key=True)
    following_id = db.Column(db.String(36), db.ForeignKey('creator_profiles.id', ondelete='CASCADE'),
                             primary_key=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'follower_id': self.follower_id,
            'following_id': self.following_id,
            'created_at': isoformat(self.created_at),
        }
