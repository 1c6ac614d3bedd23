"""
Tests for gift guide generation, the guide endpoints and the daily cron job.
"""

import json
from unittest.mock import MagicMock, patch

import openai
import pytest

from giddylist import db
from giddylist.models import GiftGuide, GuideGenerationLog, Product
from giddylist.services.guide_generator import (
    GuideGenerator,
    build_user_prompt,
    parse_content,
    to_base36,
)


@pytest.fixture
def toys(app):
    products = [
        Product(title='Magna-Tiles 100 Piece Set', original_url='https://a.example/magna',
                category='toys', age_range='3-5', price=119.99,
                image_url='https://a.example/magna.jpg'),
        Product(title='Wooden Train Set', original_url='https://a.example/train',
                category='toys', age_range='3-5'),
        Product(title='Picture Book', original_url='https://a.example/book', category='books'),
    ]
    db.session.add_all(products)
    db.session.commit()
    return products


def _completion(text, tokens=321):
    completion = MagicMock()
    completion.choices = [MagicMock()]
    completion.choices[0].message.content = text
    completion.usage.total_tokens = tokens
    return completion


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    """Prompt building and reply parsing."""

    def test_to_base36(self):
        assert to_base36(0) == '0'
        assert to_base36(35) == 'z'
        assert to_base36(36) == '10'

    def test_parse_content_finds_embedded_json(self):
        text = 'Here you go:\n```json\n{"title": "Best Toys"}\n```'
        assert parse_content(text) == {'title': 'Best Toys'}

    def test_parse_content_rejects_garbage(self):
        assert parse_content('no json here') is None
        assert parse_content('{not: valid}') is None
        assert parse_content(None) is None

    def test_prompt_lists_products(self, toys):
        prompt = build_user_prompt('age', ['3-5'], toys[:2])
        assert 'Target Age Group: Preschool (3-5)' in prompt
        assert f'ID: {toys[0].id}' in prompt
        assert 'Price: $119.99' in prompt
        assert 'Price: Price varies' in prompt
        assert 'Include all 2 products' in prompt


# ---------------------------------------------------------------------------
# GuideGenerator
# ---------------------------------------------------------------------------

class TestGuideGenerator:
    """Draft creation with and without a model client."""

    def test_template_content_without_client(self, toys):
        guide, error, log_id = GuideGenerator(client=None).create_guide('category', ['toys'])

        assert error is None
        assert guide.slug == 'best-toys-for-kids'
        assert guide.title == 'Best Toys & Games for Kids'
        assert guide.status == 'draft'
        assert guide.category == 'toys'
        assert guide.cover_image_url is None or guide.cover_image_url.startswith('https://')
        assert {gp.product.title for gp in guide.products} == {'Magna-Tiles 100 Piece Set',
                                                               'Wooden Train Set'}
        log = db.session.get(GuideGenerationLog, log_id)
        assert log.status == 'completed'
        assert log.tokens_used == 0
        assert log.guide_id == guide.id

    def test_model_content_is_used(self, toys):
        client = MagicMock()
        client.chat.completions.create.return_value = _completion(json.dumps({
            'title': 'Preschool Picks',
            'metaDescription': 'The best preschool toys.',
            'introContent': 'Hello parents.',
            'productDescriptions': [{'productId': toys[0].id, 'description': 'Magnetic fun.',
                                     'highlightReason': "Editor's pick"}],
            'keywords': ['preschool', 'toys'],
            'suggestedSlug': 'Preschool Picks!',
        }))

        guide, error, log_id = GuideGenerator(client=client, model='test-model').create_guide(
            'age', ['3-5'])

        assert error is None
        assert guide.slug == 'preschool-picks'
        assert guide.title == 'Preschool Picks'
        assert guide.keywords == ['preschool', 'toys']
        assert guide.age_range == '3-5'
        by_title = {gp.product.title: gp for gp in guide.products}
        assert by_title['Magna-Tiles 100 Piece Set'].highlight_reason == "Editor's pick"
        assert by_title['Wooden Train Set'].ai_description is None
        assert db.session.get(GuideGenerationLog, log_id).tokens_used == 321
        _, kwargs = client.chat.completions.create.call_args
        assert kwargs['model'] == 'test-model'

    def test_unparseable_reply_falls_back(self, toys):
        client = MagicMock()
        client.chat.completions.create.return_value = _completion('Sorry, I cannot help.', 50)

        guide, error, _ = GuideGenerator(client=client).create_guide('category', ['toys'])

        assert error is None
        assert guide.title == 'Best Toys & Games for Kids'

    def test_slug_conflict_gets_suffix(self, toys):
        generator = GuideGenerator(client=None)
        first, _, _ = generator.create_guide('category', ['toys'])
        second, _, _ = generator.create_guide('category', ['toys'])

        assert second.slug.startswith(first.slug + '-')
        assert second.slug != first.slug

    def test_no_products_logs_failure(self, app):
        guide, error, log_id = GuideGenerator(client=None).create_guide('age', ['13-18'])

        assert guide is None
        assert error == 'No products available for this topic'
        log = db.session.get(GuideGenerationLog, log_id)
        assert log.status == 'failed'
        assert log.error_message == error

    def test_openai_error_logs_failure(self, toys):
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError('quota exceeded')

        guide, error, log_id = GuideGenerator(client=client).create_guide('category', ['toys'])

        assert guide is None
        assert error == 'quota exceeded'
        assert GiftGuide.query.count() == 0
        assert db.session.get(GuideGenerationLog, log_id).status == 'failed'

    def test_explicit_products(self, toys):
        generator = GuideGenerator(client=None)
        guide, _, _ = generator.create_guide('occasion', ['birthday'], [toys[2].id])
        assert [gp.product.title for gp in guide.products] == ['Picture Book']

        _, error, _ = generator.create_guide('occasion', ['birthday'], ['missing-id'])
        assert error == 'Failed to fetch specified products'


# ---------------------------------------------------------------------------
# Guide endpoints
# ---------------------------------------------------------------------------

class TestGuideEndpoints:
    """Generating, reading, publishing and archiving guides."""

    def test_generate_requires_admin_or_cron(self, client, parent_headers, profiles, toys):
        payload = {'topic_type': 'category', 'topic_params': ['toys']}
        assert client.post('/api/guides/generate', json=payload).status_code == 401
        assert client.post('/api/guides/generate', headers=parent_headers,
                           json=payload).status_code == 403

    def test_generate_validates_topic(self, client, admin_headers, profiles):
        response = client.post('/api/guides/generate', headers=admin_headers,
                               json={'topic_type': 'weather', 'topic_params': ['rain']})
        assert response.status_code == 400
        response = client.post('/api/guides/generate', headers=admin_headers,
                               json={'topic_type': 'age', 'topic_params': []})
        assert response.status_code == 400

    def test_generate_failure_returns_log_id(self, client, admin_headers, profiles):
        response = client.post('/api/guides/generate', headers=admin_headers,
                               json={'topic_type': 'age', 'topic_params': ['13-18']})
        assert response.status_code == 500
        body = response.get_json()
        assert body['error'] == 'No products available for this topic'
        assert body['logId']

    def test_draft_lifecycle(self, client, admin_headers, profiles, toys):
        response = client.post('/api/guides/generate', headers=admin_headers,
                               json={'topic_type': 'category', 'topic_params': ['toys']})
        assert response.status_code == 201
        body = response.get_json()
        assert body['message'] == 'Guide generated as draft'
        slug = body['guide']['slug']

        assert client.get(f'/api/guides/{slug}').status_code == 404
        assert client.get('/api/guides').get_json()['guides'] == []

        admin_view = client.get(f'/api/guides/{slug}', headers=admin_headers).get_json()
        assert len(admin_view['products']) == 2

        published = client.put(f'/api/guides/{slug}', headers=admin_headers,
                               json={'status': 'published', 'title': 'Top Toys'})
        assert published.get_json()['guide']['published_at'] is not None

        public = client.get(f'/api/guides/{slug}').get_json()
        assert public['guide']['title'] == 'Top Toys'
        assert public['guide']['view_count'] == 1

        listing = client.get('/api/guides').get_json()
        assert listing['total'] == 1
        assert listing['guides'][0]['product_count'] == 2

        assert client.delete(f'/api/guides/{slug}', headers=admin_headers).status_code == 200
        assert client.get(f'/api/guides/{slug}').status_code == 404

    def test_invalid_status_update(self, client, admin_headers, profiles, toys):
        guide, _, _ = GuideGenerator(client=None).create_guide('category', ['toys'])
        response = client.put(f'/api/guides/{guide.slug}', headers=admin_headers,
                              json={'status': 'deleted'})
        assert response.status_code == 400

    def test_cron_generation_publishes(self, client, cron_headers, toys):
        response = client.post('/api/guides/generate', headers=cron_headers,
                               json={'topic_type': 'category', 'topic_params': ['toys']})
        assert response.status_code == 201
        assert response.get_json()['guide']['status'] == 'published'


# ---------------------------------------------------------------------------
# Daily cron
# ---------------------------------------------------------------------------

class TestDailyGuides:
    """Scheduled generation for today's topic."""

    TOPIC = {'type': 'category', 'params': ['toys']}

    def test_rejects_bad_secret(self, client, parent_headers):
        assert client.post('/api/cron/daily-guides').status_code == 401
        assert client.get('/api/cron/daily-guides', headers=parent_headers).status_code == 401

    def test_non_ascii_secret_is_rejected(self, client):
        assert client.get('/api/cron/daily-guides',
                          headers={'Authorization': 'Bearer \u00e9'}).status_code == 401
        response = client.post('/api/guides/generate', headers={'Authorization': 'Bearer caf\u00e9'},
                               json={'topic_type': 'category', 'topic_params': ['toys']})
        assert response.status_code == 401

    def test_skips_without_products(self, client, cron_headers):
        with patch('giddylist.routes.guides.get_todays_topic', return_value=self.TOPIC):
            body = client.get('/api/cron/daily-guides', headers=cron_headers).get_json()
        assert body['message'] == "Skipped - no products available for today's topic"
        assert body['topic'] == 'category: toys'

    def test_generates_once_per_week(self, client, cron_headers, toys):
        with patch('giddylist.routes.guides.get_todays_topic', return_value=self.TOPIC):
            first = client.post('/api/cron/daily-guides', headers=cron_headers).get_json()
            second = client.post('/api/cron/daily-guides', headers=cron_headers).get_json()

        assert first['message'] == 'Generated 1 guides, 0 failed'
        assert first['results'][0]['status'] == 'success'
        assert second['results'] == [{'topic': 'category-toys', 'status': 'skipped',
                                      'error': 'Similar guide generated recently'}]
        guide = GiftGuide.query.one()
        assert guide.status == 'published'
