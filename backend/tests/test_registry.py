"""
Tests for registries: owner management, the public view and gift claims.
"""

from giddylist import db
from giddylist.models import GiftClaim, Notification, Registry, WishlistItem

SLUG = 'mayas-4th-birthday-abc123'


def _item(item_id):
    return db.session.get(WishlistItem, item_id)


# ---------------------------------------------------------------------------
# Owner management
# ---------------------------------------------------------------------------

class TestRegistryManagement:
    """Creating and editing registries."""

    def test_create_requires_login(self, client):
        response = client.post('/api/registry', json={'name': 'Birthday'})
        assert response.status_code == 401
        assert response.get_json() == {'success': False, 'error': 'Unauthorized'}

    def test_create_generates_slug(self, client, parent_headers, kid):
        response = client.post('/api/registry', headers=parent_headers,
                               json={'name': "Maya's Party!", 'kid_id': kid.id,
                                     'event_date': '2026-11-02'})
        assert response.status_code == 201
        registry = response.get_json()['registry']
        assert registry['slug'].startswith('mayas-party-')
        assert registry['event_date'] == '2026-11-02'
        assert registry['kids'] == {'id': kid.id, 'name': 'Maya'}
        assert registry['is_public'] is True

    def test_create_requires_name(self, client, parent_headers):
        response = client.post('/api/registry', headers=parent_headers, json={'name': '  '})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Name is required'

    def test_cannot_use_someone_elses_kid(self, client, friend_headers, kid):
        response = client.post('/api/registry', headers=friend_headers,
                               json={'name': 'Sneaky', 'kid_id': kid.id})
        assert response.status_code == 404

    def test_update_by_non_owner_forbidden(self, client, friend_headers, registry):
        response = client.put(f'/api/registry/{SLUG}', headers=friend_headers,
                              json={'name': 'Mine now'})
        assert response.status_code == 403

    def test_add_items_skips_duplicates(self, client, parent_headers, registry, kid, wishlist_item):
        second = WishlistItem(kid_id=kid.id, user_id='parent-1', url='https://www.target.com/p/-/A-1',
                              title='Play Kitchen')
        db.session.add(second)
        db.session.commit()

        response = client.post(f'/api/registry/{SLUG}/items', headers=parent_headers,
                               json={'wishlist_ids': [wishlist_item.id, second.id]})

        assert response.status_code == 201
        items = response.get_json()['items']
        assert [item['wishlist_id'] for item in items] == [second.id]
        assert items[0]['display_order'] == 1

    def test_remove_item(self, client, parent_headers, registry, wishlist_item):
        response = client.delete(f'/api/registry/{SLUG}/items/{wishlist_item.id}',
                                 headers=parent_headers)
        assert response.status_code == 200
        again = client.delete(f'/api/registry/{SLUG}/items/{wishlist_item.id}',
                              headers=parent_headers)
        assert again.status_code == 404

    def test_delete_registry(self, client, parent_headers, registry):
        response = client.delete(f'/api/registry/{SLUG}', headers=parent_headers)
        assert response.status_code == 200
        assert Registry.query.filter_by(slug=SLUG).first() is None


# ---------------------------------------------------------------------------
# Public view
# ---------------------------------------------------------------------------

class TestRegistryView:
    """What guests and owners see."""

    def test_guest_view(self, client, registry):
        response = client.get(f'/api/registry/{SLUG}')
        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['isOwner'] is False
        assert body['claims'] == []
        assert body['totalItems'] == 1
        assert body['claimedCount'] == 0
        assert body['progressPercent'] == 0
        assert body['registry']['items'][0]['title'] == 'LEGO DUPLO Classic Brick Box'

    def test_private_registry_hidden_from_guests(self, client, parent_headers, friend_headers, registry):
        registry.is_public = False
        db.session.commit()

        assert client.get(f'/api/registry/{SLUG}').status_code == 404
        assert client.get(f'/api/registry/{SLUG}', headers=friend_headers).status_code == 404
        owner_view = client.get(f'/api/registry/{SLUG}', headers=parent_headers)
        assert owner_view.status_code == 200
        assert owner_view.get_json()['isOwner'] is True

    def test_hidden_prices(self, client, parent_headers, registry):
        registry.show_prices = False
        db.session.commit()

        guest_item = client.get(f'/api/registry/{SLUG}').get_json()['registry']['items'][0]
        owner_item = client.get(f'/api/registry/{SLUG}',
                                headers=parent_headers).get_json()['registry']['items'][0]
        assert guest_item['price'] is None
        assert owner_item['price'] == 34.99

    def test_purchased_items_hidden_from_guests(self, client, parent_headers, registry, wishlist_item):
        wishlist_item.status = 'purchased'
        db.session.commit()

        assert client.get(f'/api/registry/{SLUG}').get_json()['totalItems'] == 0
        assert client.get(f'/api/registry/{SLUG}',
                          headers=parent_headers).get_json()['totalItems'] == 1

    def test_unknown_slug(self, client):
        response = client.get('/api/registry/nope')
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Registry not found'


# ---------------------------------------------------------------------------
# Claims
# ---------------------------------------------------------------------------

class TestClaims:
    """Reserving and purchasing gifts."""

    def test_anonymous_claim_needs_name(self, client, registry, wishlist_item):
        response = client.post(f'/api/registry/{SLUG}/claim', json={'wishlist_id': wishlist_item.id})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Name is required'

    def test_missing_wishlist_id(self, client, registry):
        response = client.post(f'/api/registry/{SLUG}/claim', json={'guest_name': 'Grandma'})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Wishlist item ID is required'

    def test_guest_claim_updates_progress(self, client, parent_headers, registry, wishlist_item):
        response = client.post(f'/api/registry/{SLUG}/claim',
                               json={'wishlist_id': wishlist_item.id, 'guest_name': 'Grandma'})

        assert response.status_code == 200
        claim = response.get_json()['claim']
        assert claim['claim_type'] == 'reserved'
        assert claim['guest_name'] == 'Grandma'
        assert _item(wishlist_item.id).status == 'reserved'
        assert _item(wishlist_item.id).quantity_claimed == 1

        owner_view = client.get(f'/api/registry/{SLUG}', headers=parent_headers).get_json()
        assert owner_view['claimedCount'] == 1
        assert owner_view['progressPercent'] == 100
        assert len(owner_view['claims']) == 1

        notification = Notification.query.filter_by(user_id='parent-1').one()
        assert notification.type == 'claim'

    def test_cannot_over_claim(self, client, registry, wishlist_item):
        payload = {'wishlist_id': wishlist_item.id, 'guest_name': 'Grandma'}
        assert client.post(f'/api/registry/{SLUG}/claim', json=payload).status_code == 200

        response = client.post(f'/api/registry/{SLUG}/claim', json=payload)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Not enough quantity available'

    def test_purchased_is_not_downgraded(self, client, friend_headers, registry, wishlist_item):
        wishlist_item.quantity = 2
        db.session.commit()

        client.post(f'/api/registry/{SLUG}/claim', headers=friend_headers,
                    json={'wishlist_id': wishlist_item.id, 'claim_type': 'purchased'})
        client.post(f'/api/registry/{SLUG}/claim', json={'wishlist_id': wishlist_item.id,
                                                         'guest_name': 'Uncle Ray'})

        item = _item(wishlist_item.id)
        assert item.status == 'purchased'
        assert item.quantity_claimed == 2

    def test_private_registry_claim_is_not_found(self, client, registry, wishlist_item):
        registry.is_public = False
        db.session.commit()

        response = client.post(f'/api/registry/{SLUG}/claim',
                               json={'wishlist_id': wishlist_item.id, 'guest_name': 'Grandma'})
        assert response.status_code == 404

    def test_login_required_when_anonymous_claims_disabled(self, client, registry, wishlist_item):
        registry.allow_anonymous_claims = False
        db.session.commit()

        response = client.post(f'/api/registry/{SLUG}/claim',
                               json={'wishlist_id': wishlist_item.id, 'guest_name': 'Grandma'})
        assert response.status_code == 401

    def test_claimer_can_release(self, client, friend_headers, registry, wishlist_item):
        claim = client.post(f'/api/registry/{SLUG}/claim', headers=friend_headers,
                            json={'wishlist_id': wishlist_item.id}).get_json()['claim']

        response = client.delete(f"/api/registry/{SLUG}/claim?claim_id={claim['id']}",
                                 headers=friend_headers)

        assert response.status_code == 200
        assert db.session.get(GiftClaim, claim['id']) is None
        item = _item(wishlist_item.id)
        assert item.status == 'available'
        assert item.quantity_claimed == 0

    def test_release_requires_claim_id(self, client, friend_headers, registry):
        response = client.delete(f'/api/registry/{SLUG}/claim', headers=friend_headers)
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Claim ID is required'

    def test_stranger_cannot_release(self, client, admin_headers, registry, wishlist_item):
        claim = client.post(f'/api/registry/{SLUG}/claim',
                            json={'wishlist_id': wishlist_item.id,
                                  'guest_name': 'Grandma'}).get_json()['claim']

        response = client.delete(f"/api/registry/{SLUG}/claim?claim_id={claim['id']}",
                                 headers=admin_headers)
        assert response.status_code == 403
