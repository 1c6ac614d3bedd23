"""
Shared fixtures for the Giddy List test suite.

Every test gets a fresh in-memory database and a fake identity service,
so nothing talks to the network.
"""

from unittest.mock import MagicMock

import pytest

from config import TestingConfig
from giddylist import create_app, db
from giddylist.models import CreatorProfile, Kid, Registry, RegistryItem, WishlistItem
from giddylist.services.scraper import ScrapedProduct


class FakeAuthService:
    """Maps bearer tokens straight to user ids."""

    def __init__(self, tokens=None):
        self.tokens = dict(tokens or {})

    def get_user_id(self, token):
        return self.tokens.get(token)

    def get_user(self, token):
        user_id = self.get_user_id(token)
        return {'id': user_id, 'email': f'{user_id}@example.com'} if user_id else None


# ---------------------------------------------------------------------------
# Application fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv('AMAZON_AFFILIATE_TAG', raising=False)
    app = create_app(TestingConfig)
    app.extensions['auth_service'] = FakeAuthService({
        'parent-token': 'parent-1',
        'friend-token': 'friend-1',
        'admin-token': 'admin-1',
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def auth(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def parent_headers():
    return auth('parent-token')


@pytest.fixture
def friend_headers():
    return auth('friend-token')


@pytest.fixture
def admin_headers():
    return auth('admin-token')


@pytest.fixture
def cron_headers():
    return auth('cron-secret')


# ---------------------------------------------------------------------------
# Data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def profiles(app):
    parent = CreatorProfile(id='parent-1', username='giddyparent', display_name='Giddy Parent')
    friend = CreatorProfile(id='friend-1', username='auntie_jo')
    admin = CreatorProfile(id='admin-1', username='site_admin', is_admin=True)
    db.session.add_all([parent, friend, admin])
    db.session.commit()
    return {'parent': parent, 'friend': friend, 'admin': admin}


@pytest.fixture
def kid(app):
    kid = Kid(user_id='parent-1', name='Maya')
    db.session.add(kid)
    db.session.commit()
    return kid


@pytest.fixture
def wishlist_item(kid):
    item = WishlistItem(
        kid_id=kid.id,
        user_id='parent-1',
        url='https://www.amazon.com/dp/B084KPTLXR',
        title='LEGO DUPLO Classic Brick Box',
        price=34.99,
        retailer='amazon',
        asin='B084KPTLXR',
    )
    db.session.add(item)
    db.session.commit()
    return item


@pytest.fixture
def registry(kid, wishlist_item):
    registry = Registry(user_id='parent-1', kid_id=kid.id, name="Maya's 4th Birthday",
                        slug='mayas-4th-birthday-abc123')
    db.session.add(registry)
    db.session.flush()
    db.session.add(RegistryItem(registry_id=registry.id, wishlist_id=wishlist_item.id,
                                display_order=0))
    db.session.commit()
    return registry


@pytest.fixture
def scraped_product():
    return ScrapedProduct(
        title='Magna-Tiles Clear Colors 100 Piece Set',
        description='Magnetic building tiles',
        image_url='https://m.media-amazon.com/images/I/81RJe4QFxnL.jpg',
        price=119.99,
        currency='USD',
        retailer='amazon',
        asin='B000CBSNRY',
        original_url='https://www.amazon.com/dp/B000CBSNRY',
    )


@pytest.fixture
def mock_response():
    """Build a fake requests response."""
    def _build(text='', status_code=200, json_data=None):
        response = MagicMock()
        response.ok = 200 <= status_code < 400
        response.status_code = status_code
        response.text = text
        response.json.return_value = json_data
        return response
    return _build
