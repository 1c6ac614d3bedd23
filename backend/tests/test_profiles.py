"""
Tests for creator profiles, follows, notifications and guide earnings.
"""

from giddylist import db
from giddylist.models import CreatorProfile, Notification


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

class TestProfiles:
    """Own profile and public profile pages."""

    def test_me_requires_login(self, client):
        assert client.get('/api/profiles/me').status_code == 401

    def test_me_includes_private_fields(self, client, parent_headers, profiles):
        body = client.get('/api/profiles/me', headers=parent_headers).get_json()
        assert body['profile']['username'] == 'giddyparent'
        assert body['profile']['available_earnings'] == 0.0

    def test_first_update_creates_profile(self, client, app):
        app.extensions['auth_service'].tokens['newbie-token'] = 'newbie-1'
        response = client.put('/api/profiles/me', headers={'Authorization': 'Bearer newbie-token'},
                              json={'username': 'New_Parent', 'bio': '  Two kids  '})
        assert response.status_code == 200
        profile = db.session.get(CreatorProfile, 'newbie-1')
        assert profile.username == 'new_parent'
        assert profile.bio == 'Two kids'

    def test_invalid_username(self, client, parent_headers, profiles):
        response = client.put('/api/profiles/me', headers=parent_headers, json={'username': 'a!'})
        assert response.status_code == 400

    def test_username_taken(self, client, parent_headers, profiles):
        response = client.put('/api/profiles/me', headers=parent_headers,
                              json={'username': 'auntie_jo'})
        assert response.status_code == 409
        assert response.get_json()['error'] == 'Username is already taken'

    def test_public_view_hides_private_fields(self, client, profiles):
        body = client.get('/api/profiles/GiddyParent').get_json()
        assert body['isOwner'] is False
        assert body['isFollowing'] is False
        assert 'available_earnings' not in body['profile']
        assert body['stats']['followers_count'] == 0

    def test_private_profile_is_not_found(self, client, parent_headers, friend_headers, profiles):
        profiles['parent'].is_public = False
        db.session.commit()

        assert client.get('/api/profiles/giddyparent').status_code == 404
        assert client.get('/api/profiles/giddyparent', headers=friend_headers).status_code == 404
        own = client.get('/api/profiles/giddyparent', headers=parent_headers)
        assert own.status_code == 200
        assert own.get_json()['isOwner'] is True


# ---------------------------------------------------------------------------
# Follows
# ---------------------------------------------------------------------------

class TestFollows:
    """Following and unfollowing creators."""

    def test_follow_and_unfollow(self, client, friend_headers, profiles):
        response = client.post('/api/profiles/giddyparent/follow', headers=friend_headers)
        assert response.get_json() == {'success': True, 'following': True, 'followers_count': 1}

        # Following twice is a no-op
        again = client.post('/api/profiles/giddyparent/follow', headers=friend_headers)
        assert again.get_json()['followers_count'] == 1

        view = client.get('/api/profiles/giddyparent', headers=friend_headers).get_json()
        assert view['isFollowing'] is True

        response = client.delete('/api/profiles/giddyparent/follow', headers=friend_headers)
        assert response.get_json()['followers_count'] == 0

    def test_follow_notifies_target(self, client, friend_headers, profiles):
        client.post('/api/profiles/giddyparent/follow', headers=friend_headers)
        notification = Notification.query.filter_by(user_id='parent-1').one()
        assert notification.type == 'follow'
        assert notification.data == {'follower_id': 'friend-1'}

    def test_cannot_follow_self(self, client, parent_headers, profiles):
        response = client.post('/api/profiles/giddyparent/follow', headers=parent_headers)
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class TestNotifications:
    """Listing and marking notifications read."""

    def test_list_and_mark_read(self, client, parent_headers, friend_headers, profiles):
        client.post('/api/profiles/giddyparent/follow', headers=friend_headers)

        body = client.get('/api/notifications', headers=parent_headers).get_json()
        assert body['unread_count'] == 1
        assert len(body['notifications']) == 1

        marked = client.post('/api/notifications/read', headers=parent_headers, json={})
        assert marked.get_json()['updated'] == 1

        unread = client.get('/api/notifications?unread=true', headers=parent_headers).get_json()
        assert unread['notifications'] == []
        assert unread['unread_count'] == 0


# ---------------------------------------------------------------------------
# Guide earnings
# ---------------------------------------------------------------------------

class TestGuideEarnings:
    """Becoming a guide, earnings summary and payouts."""

    def test_earnings_require_guide(self, client, parent_headers, profiles):
        assert client.get('/api/earnings', headers=parent_headers).status_code == 403

    def test_become_guide_strips_at_sign(self, client, parent_headers, profiles):
        response = client.post('/api/guide/become', headers=parent_headers,
                               json={'instagram_handle': '@giddy.parent'})
        profile = response.get_json()['profile']
        assert profile['guide_enabled'] is True
        assert profile['guide_tier'] == 'standard'
        assert profile['instagram_handle'] == 'giddy.parent'

    def test_summary_with_estimate(self, client, parent_headers, profiles):
        profiles['parent'].guide_enabled = True
        profiles['parent'].guide_tier = 'influencer'
        profiles['parent'].available_earnings = 30.0
        db.session.commit()

        body = client.get('/api/earnings?monthly_views=100000', headers=parent_headers).get_json()
        summary = body['earnings']
        assert summary['split'] == {'guide': 70, 'platform': 30}
        assert summary['can_request_payout'] is True
        assert summary['formatted_available'] == '$30.00'
        assert summary['estimated_monthly_earnings'] == 84.0

    def test_payout(self, client, parent_headers, profiles):
        profiles['parent'].guide_enabled = True
        profiles['parent'].available_earnings = 40.5
        db.session.commit()

        response = client.post('/api/earnings/payout', headers=parent_headers)
        assert response.get_json()['amount'] == 40.5
        assert db.session.get(CreatorProfile, 'parent-1').available_earnings == 0.0

        too_small = client.post('/api/earnings/payout', headers=parent_headers)
        assert too_small.status_code == 400
        assert too_small.get_json()['error'] == 'Minimum payout is $25.00'
