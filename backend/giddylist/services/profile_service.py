import logging
import re

from sqlalchemy import func

from giddylist import db
from giddylist.errors import BadRequest, Conflict, Forbidden, NotFound
from giddylist.models import AffiliateClick, Collection, CreatorProfile, Follow, Registry
from giddylist.services import earnings
from giddylist.services.notification_service import notify
from giddylist.utils import clean_text

USERNAME_PATTERN = re.compile(r'^[a-z0-9_]{3,30}$')


class ProfileService:
    EDITABLE_FIELDS = ('display_name', 'bio', 'avatar_url', 'cover_image_url')
    SOCIAL_FIELDS = ('instagram_handle', 'tiktok_handle', 'youtube_handle')

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def get_by_username(self, username):
        return CreatorProfile.query.filter(
            func.lower(CreatorProfile.username) == (username or '').lower()
        ).first()

    def get_own(self, user_id):
        profile = db.session.get(CreatorProfile, user_id)
        if not profile:
            raise NotFound('Profile not found')
        return profile

    def get_view(self, username, viewer_id=None):
        """Public profile page data; private profiles look absent to others."""
        profile = self.get_by_username(username)
        is_owner = profile is not None and viewer_id == profile.id
        if not profile or (not profile.is_public and not is_owner):
            raise NotFound('Profile not found')

        collections_query = Collection.query.filter_by(user_id=profile.id)
        registries_query = Registry.query.filter_by(user_id=profile.id)
        if not is_owner:
            collections_query = collections_query.filter_by(is_public=True)
            registries_query = registries_query.filter_by(is_public=True)

        collections = collections_query.order_by(Collection.created_at.desc()).all()
        registries = registries_query.order_by(Registry.created_at.desc()).all()

        is_following = False
        if viewer_id and not is_owner:
            is_following = db.session.get(Follow, (viewer_id, profile.id)) is not None

        return {
            'profile': profile.to_dict(include_private=is_owner),
            'isOwner': is_owner,
            'isFollowing': is_following,
            'stats': {
                'followers_count': self.followers_count(profile.id),
                'following_count': self.following_count(profile.id),
                'collections_count': len(collections),
                'registries_count': len(registries),
            },
            'collections': [collection.to_dict() for collection in collections],
            'registries': [registry.to_dict() for registry in registries],
        }

    def upsert_own(self, user_id, data):
        profile = db.session.get(CreatorProfile, user_id)

        if 'username' in data or profile is None:
            username = (data.get('username') or '').strip().lower()
            if not USERNAME_PATTERN.match(username):
                raise BadRequest('Username must be 3-30 lowercase letters, numbers or underscores')
            taken = self.get_by_username(username)
            if taken and taken.id != user_id:
                raise Conflict('Username is already taken')
        else:
            username = profile.username

        if profile is None:
            profile = CreatorProfile(id=user_id, username=username)
            db.session.add(profile)
        profile.username = username

        for field in self.EDITABLE_FIELDS:
            if field in data:
                setattr(profile, field, clean_text(data.get(field)))
        if 'is_public' in data:
            profile.is_public = bool(data['is_public'])

        db.session.commit()
        return profile

    # -- follows ----------------------------------------------------------

    def follow(self, follower_id, username):
        target = self._get_visible(username, follower_id)
        if target.id == follower_id:
            raise BadRequest('You cannot follow yourself')
        if db.session.get(CreatorProfile, follower_id) is None:
            raise BadRequest('Create a profile before following others')

        if db.session.get(Follow, (follower_id, target.id)) is None:
            db.session.add(Follow(follower_id=follower_id, following_id=target.id))
            db.session.flush()
            target.total_followers = self.followers_count(target.id)
            notify(target.id, 'follow', 'You have a new follower',
                   data={'follower_id': follower_id})
            db.session.commit()
        return target

    def unfollow(self, follower_id, username):
        target = self._get_visible(username, follower_id)
        follow = db.session.get(Follow, (follower_id, target.id))
        if follow:
            db.session.delete(follow)
            db.session.flush()
            target.total_followers = self.followers_count(target.id)
            db.session.commit()
        return target

    @staticmethod
    def followers_count(profile_id):
        return Follow.query.filter_by(following_id=profile_id).count()

    @staticmethod
    def following_count(profile_id):
        return Follow.query.filter_by(follower_id=profile_id).count()

    # -- guide monetization -----------------------------------------------

    def become_guide(self, user_id, data):
        profile = self.get_own(user_id)
        profile.guide_enabled = True
        if not profile.guide_tier:
            profile.guide_tier = 'standard'
        if 'guide_bio' in data:
            profile.guide_bio = clean_text(data.get('guide_bio'))
        for field in self.SOCIAL_FIELDS:
            if field in data:
                handle = clean_text(data.get(field))
                setattr(profile, field, handle.lstrip('@') if handle else None)
        db.session.commit()
        self.logger.info(f"{profile.username} enabled guide monetization")
        return profile

    def earnings_summary(self, user_id, monthly_views=None):
        profile = self.get_own(user_id)
        if not profile.guide_enabled:
            raise Forbidden('Guide monetization is not enabled')

        clicks = db.session.query(func.count(AffiliateClick.id)).filter(
            AffiliateClick.guide_id == user_id
        ).scalar() or 0
        tier = profile.guide_tier

        summary = {
            'tier': tier,
            'tier_info': earnings.get_tier_info(tier),
            'split': earnings.get_tier_split(tier),
            'pending_earnings': profile.pending_earnings,
            'available_earnings': profile.available_earnings,
            'lifetime_earnings': profile.lifetime_earnings,
            'formatted_available': earnings.format_earnings(profile.available_earnings),
            'total_clicks': clicks,
            'can_request_payout': earnings.can_request_payout(profile.available_earnings),
            'minimum_payout': earnings.MINIMUM_PAYOUT,
        }
        if monthly_views is not None:
            summary['estimated_monthly_earnings'] = earnings.estimate_monthly_earnings(
                monthly_views, tier
            )
        return summary

    def request_payout(self, user_id):
        profile = self.get_own(user_id)
        if not profile.guide_enabled:
            raise Forbidden('Guide monetization is not enabled')
        amount = profile.available_earnings
        if not earnings.can_request_payout(amount):
            raise BadRequest(
                f'Minimum payout is {earnings.format_earnings(earnings.MINIMUM_PAYOUT)}'
            )

        profile.available_earnings = 0.0
        db.session.commit()
        self.logger.info(f"Payout of {amount:.2f} requested by {profile.username}")
        return amount

    def _get_visible(self, username, viewer_id):
        profile = self.get_by_username(username)
        if not profile or (not profile.is_public and profile.id != viewer_id):
            raise NotFound('Profile not found')
        return profile
