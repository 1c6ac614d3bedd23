from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request

from giddylist.auth import require_admin, verify_cron_secret
from giddylist.errors import Unauthorized
from giddylist.services.product_service import ProductService
from giddylist.utils import get_int_arg, get_json_body

products_bp = Blueprint('products', __name__)
product_service = ProductService()


@products_bp.route('/api/products', methods=['GET'])
def list_products():
    limit = get_int_arg('limit', current_app.config.get('PRODUCTS_PER_PAGE', 50))
    offset = get_int_arg('offset', 0)

    products, total = product_service.list(
        age_range=request.args.get('age_range'),
        category=request.args.get('category'),
        retailer=request.args.get('retailer'),
        active_only=request.args.get('active') != 'false',
        limit=limit,
        offset=offset,
    )
    return jsonify({
        'success': True,
        'products': [product.to_dict() for product in products],
        'total': total,
        'limit': limit,
        'offset': offset,
    }), HTTPStatus.OK


@products_bp.route('/api/products', methods=['POST'])
def create_product():
    require_admin()
    product = product_service.create(get_json_body())
    return jsonify({
        'success': True,
        'product': product.to_dict()
    }), HTTPStatus.CREATED


@products_bp.route('/api/products', methods=['PUT'])
def update_product():
    require_admin()
    product = product_service.update(get_json_body())
    return jsonify({
        'success': True,
        'product': product.to_dict()
    }), HTTPStatus.OK


@products_bp.route('/api/products', methods=['DELETE'])
def delete_product():
    require_admin()
    product_service.deactivate(request.args.get('id'))
    return jsonify({'success': True}), HTTPStatus.OK


@products_bp.route('/api/products/scrape', methods=['POST'])
def scrape_product():
    require_admin()
    product, action = product_service.scrape_and_save(get_json_body())

    if action == 'created':
        message, status = 'New product created from scraped data', HTTPStatus.CREATED
    else:
        message, status = 'Existing product updated with fresh data', HTTPStatus.OK

    return jsonify({
        'success': True,
        'product': product.to_dict(),
        'action': action,
        'message': message
    }), status


@products_bp.route('/api/cron/weekly-refresh', methods=['GET', 'POST'])
def weekly_refresh():
    if not verify_cron_secret():
        raise Unauthorized('Unauthorized')

    config = current_app.config
    summary = product_service.refresh_stale(
        limit=config.get('REFRESH_BATCH_LIMIT', 50),
        max_age_days=config.get('REFRESH_MAX_AGE_DAYS', 7),
        delay=config.get('REFRESH_DELAY', 0.5),
    )

    if not summary['total']:
        return jsonify({
            'success': True,
            'message': 'No products need refreshing',
            'updated': 0,
            'failed': 0
        }), HTTPStatus.OK

    payload = {
        'success': True,
        'message': 'Refresh complete',
        'total': summary['total'],
        'updated': summary['updated'],
        'failed': summary['failed'],
        'deactivated': summary['deactivated'],
    }
    if summary['errors']:
        payload['errors'] = summary['errors']
    return jsonify(payload), HTTPStatus.OK
