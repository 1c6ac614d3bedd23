from http import HTTPStatus

from flask import Blueprint, current_app, jsonify

from giddylist.errors import BadRequest
from giddylist.services.affiliate import add_affiliate_link
from giddylist.services.scraper import is_valid_url, normalize_url, scrape_product
from giddylist.utils import get_json_body

scrape_bp = Blueprint('scrape', __name__)


@scrape_bp.route('/api/scrape', methods=['POST'])
def scrape():
    data = get_json_body()
    url = data.get('url')

    if not url or not isinstance(url, str):
        raise BadRequest('URL is required')
    if not is_valid_url(url):
        raise BadRequest('Invalid URL format')

    product = scrape_product(
        normalize_url(url),
        timeout=current_app.config.get('SCRAPE_TIMEOUT', 15)
    )
    product = add_affiliate_link(product)

    return jsonify({
        'success': True,
        'data': product.to_dict()
    }), HTTPStatus.OK
