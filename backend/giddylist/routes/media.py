import hashlib
import logging
from http import HTTPStatus
from urllib.parse import urlparse

from flask import Blueprint, current_app, jsonify, redirect, request
from sqlalchemy.exc import SQLAlchemyError

from giddylist import db
from giddylist.auth import get_optional_user_id
from giddylist.errors import ApiError, BadRequest
from giddylist.models import AffiliateClick
from giddylist.services.affiliate import tag_amazon_url
from giddylist.services.storage_service import ALLOWED_BUCKETS, ALLOWED_TYPES, StorageError

media_bp = Blueprint('media', __name__)
logger = logging.getLogger(__name__)


@media_bp.route('/api/upload', methods=['POST'])
def upload():
    upload_file = request.files.get('file')
    bucket = request.form.get('bucket')

    if not upload_file:
        raise BadRequest('No file provided')
    if bucket not in ALLOWED_BUCKETS:
        raise BadRequest('Invalid bucket')
    if upload_file.mimetype not in ALLOWED_TYPES:
        raise BadRequest('Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed')

    content = upload_file.read()
    if len(content) > current_app.config.get('UPLOAD_MAX_BYTES', 5 * 1024 * 1024):
        raise BadRequest('File too large. Maximum size is 5MB')

    storage = current_app.extensions['storage_service']
    if not storage.configured:
        logger.error("Missing storage configuration")
        raise ApiError('Server configuration error')

    path = storage.build_object_path(get_optional_user_id(), upload_file.filename)
    try:
        url = storage.upload(bucket, path, content, upload_file.mimetype)
    except StorageError as e:
        raise ApiError(str(e))

    return jsonify({'success': True, 'url': url}), HTTPStatus.OK


def _click_retailer(url):
    try:
        hostname = (urlparse(url).hostname or '').lower()
    except ValueError:
        return 'other'
    if not hostname:
        return 'other'
    for retailer in ('amazon', 'target', 'walmart'):
        if retailer in hostname:
            return retailer
    return hostname.replace('www.', '', 1)


def _hash(value, length):
    return hashlib.sha256(value.encode('utf-8')).hexdigest()[:length]


@media_bp.route('/api/track/click', methods=['GET'])
def track_click():
    product_url = request.args.get('url')
    guide_id = request.args.get('guide')
    if not product_url:
        return redirect('/')

    if guide_id and current_app.config.get('DATABASE_CONFIGURED'):
        forwarded = request.headers.get('X-Forwarded-For')
        ip = forwarded.split(',')[0].strip() if forwarded else 'unknown'
        ip_hash = _hash(ip, 16)
        user_agent = request.headers.get('User-Agent', '')

        click = AffiliateClick(
            guide_id=guide_id,
            visitor_id=_hash(ip_hash + user_agent, 32),
            source_type=request.args.get('source') or 'collection',
            source_id=request.args.get('sid') or None,
            product_url=product_url,
            retailer=_click_retailer(product_url),
            ip_hash=ip_hash,
            user_agent=user_agent[:500],
            referer=request.headers.get('Referer'),
        )
        try:
            db.session.add(click)
            db.session.commit()
        except SQLAlchemyError as e:
            # The shopper still gets redirected when logging fails
            db.session.rollback()
            logger.error(f"Click tracking error: {str(e)}")

    return redirect(tag_amazon_url(product_url))
