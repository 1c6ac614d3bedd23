import logging
from datetime import timedelta
from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func

from giddylist import db
from giddylist.auth import get_optional_user_id, is_admin, require_admin, verify_cron_secret
from giddylist.errors import ApiError, BadRequest, NotFound, Unauthorized
from giddylist.models import GiftGuide, GiftGuideProduct, Product
from giddylist.models.base import utcnow
from giddylist.models.guide import GUIDE_STATUSES
from giddylist.services.guide_generator import get_guide_by_slug
from giddylist.services.topics import (TOPIC_TYPES, generate_guide_topic, get_todays_topic,
                                       should_generate_guide)
from giddylist.utils import get_int_arg, get_json_body

guides_bp = Blueprint('guides', __name__)
logger = logging.getLogger(__name__)


def _generator():
    return current_app.extensions['guide_generator']


def _guide_payload(guide):
    return {
        'success': True,
        'guide': guide.to_dict(),
        'products': [gp.to_dict() for gp in guide.products]
    }


@guides_bp.route('/api/guides', methods=['GET'])
def list_guides():
    status = request.args.get('status')
    limit = get_int_arg('limit', current_app.config.get('GUIDES_PER_PAGE', 20))
    offset = get_int_arg('offset', 0)
    include_all = request.args.get('include_all') == 'true'
    admin = is_admin(get_optional_user_id())

    query = GiftGuide.query
    # Non-admins only ever see published guides
    if not admin or (not include_all and not status):
        query = query.filter_by(status='published')
    elif status:
        query = query.filter_by(status=status)

    for field in ('age_range', 'category', 'occasion'):
        value = request.args.get(field)
        if value:
            query = query.filter(getattr(GiftGuide, field) == value)

    total = query.count()
    guides = (query
              .order_by(GiftGuide.published_at.is_(None),
                        GiftGuide.published_at.desc(),
                        GiftGuide.created_at.desc())
              .offset(offset)
              .limit(limit)
              .all())

    counts = {}
    if guides:
        counts = dict(
            db.session.query(GiftGuideProduct.guide_id, func.count(GiftGuideProduct.id))
            .filter(GiftGuideProduct.guide_id.in_([g.id for g in guides]))
            .group_by(GiftGuideProduct.guide_id)
            .all()
        )

    return jsonify({
        'success': True,
        'guides': [{**g.to_dict(), 'product_count': counts.get(g.id, 0)} for g in guides],
        'total': total,
        'limit': limit,
        'offset': offset,
    }), HTTPStatus.OK


@guides_bp.route('/api/guides/generate', methods=['POST'])
def generate_guide():
    is_cron = verify_cron_secret()
    if not is_cron:
        require_admin()

    data = get_json_body()
    topic_type = data.get('topic_type')
    topic_params = data.get('topic_params')
    if topic_type not in TOPIC_TYPES:
        raise BadRequest(f"Invalid topic_type. Must be one of: {', '.join(TOPIC_TYPES)}")
    if not isinstance(topic_params, list) or not topic_params:
        raise BadRequest('topic_params is required and must be a non-empty array')

    generator = _generator()
    guide, error, log_id = generator.create_guide(topic_type, topic_params,
                                                  data.get('product_ids'))
    if error or not guide:
        raise ApiError(error or 'Failed to generate guide',
                       HTTPStatus.INTERNAL_SERVER_ERROR, logId=log_id)

    if is_cron:
        generator.publish_guide(guide)

    return jsonify({
        'success': True,
        'guide': guide.to_dict(),
        'logId': log_id,
        'message': 'Guide generated and published' if is_cron else 'Guide generated as draft'
    }), HTTPStatus.CREATED


@guides_bp.route('/api/guides/<slug>', methods=['GET'])
def get_guide(slug):
    guide = get_guide_by_slug(slug)

    if guide.status != 'published':
        # Drafts and archived guides look absent to everyone but admins
        if not is_admin(get_optional_user_id()):
            raise NotFound('Guide not found')
    else:
        guide.view_count = (guide.view_count or 0) + 1
        db.session.commit()

    return jsonify(_guide_payload(guide)), HTTPStatus.OK


@guides_bp.route('/api/guides/<slug>', methods=['PUT'])
def update_guide(slug):
    require_admin()
    data = get_json_body()
    guide = get_guide_by_slug(slug)

    if 'status' in data and data['status'] not in GUIDE_STATUSES:
        raise BadRequest(f"Invalid status. Must be one of: {', '.join(GUIDE_STATUSES)}")

    for field in GiftGuide.UPDATABLE_FIELDS:
        if field in data and field != 'status':
            setattr(guide, field, data[field])

    if data.get('status') == 'published':
        _generator().publish_guide(guide)
    else:
        if 'status' in data:
            guide.status = data['status']
        db.session.commit()

    return jsonify(_guide_payload(guide)), HTTPStatus.OK


@guides_bp.route('/api/guides/<slug>', methods=['DELETE'])
def archive_guide(slug):
    require_admin()
    guide = get_guide_by_slug(slug)
    guide.status = 'archived'
    db.session.commit()
    return jsonify({'success': True}), HTTPStatus.OK


@guides_bp.route('/api/cron/daily-guides', methods=['GET', 'POST'])
def daily_guides():
    if not verify_cron_secret():
        raise Unauthorized('Unauthorized')

    topic = get_todays_topic()
    topic_label = f"{topic['type']}: {', '.join(topic['params'])}"
    logger.info(f"Daily guide generation starting for topic: {topic_label}")

    product_query = Product.query.filter_by(is_active=True)
    if topic['type'] == 'age':
        product_query = product_query.filter(Product.age_range.in_(topic['params']))
    elif topic['type'] == 'category':
        product_query = product_query.filter(Product.category.in_(topic['params']))

    if product_query.first() is None:
        logger.info(f"Skipping generation: no products for topic {topic['type']}")
        return jsonify({
            'success': True,
            'message': "Skipped - no products available for today's topic",
            'topic': topic_label
        }), HTTPStatus.OK

    recent = [
        {'slug': guide.slug, 'created_at': guide.created_at}
        for guide in GiftGuide.query.filter(
            GiftGuide.created_at >= utcnow() - timedelta(days=7)
        ).all()
    ]

    generator = _generator()
    results = []
    for param in topic['params']:
        topic_key = f"{topic['type']}-{param}"
        slug = generate_guide_topic(topic['type'], [param])['slug']
        if not should_generate_guide(recent, slug):
            results.append({'topic': topic_key, 'status': 'skipped',
                            'error': 'Similar guide generated recently'})
            continue

        guide, error, _ = generator.create_guide(topic['type'], [param])
        if error or not guide:
            results.append({'topic': topic_key, 'status': 'failed',
                            'error': error or 'Unknown error'})
            continue

        generator.publish_guide(guide)
        recent.append({'slug': guide.slug, 'created_at': guide.created_at})
        results.append({'topic': topic_key, 'status': 'success', 'guideId': guide.id})
        logger.info(f"Generated and published guide: {guide.title} ({guide.slug})")

    succeeded = sum(1 for r in results if r['status'] == 'success')
    failed = sum(1 for r in results if r['status'] == 'failed')
    return jsonify({
        'success': True,
        'message': f'Generated {succeeded} guides, {failed} failed',
        'topic': topic_label,
        'results': results
    }), HTTPStatus.OK
