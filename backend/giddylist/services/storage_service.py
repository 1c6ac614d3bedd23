import logging
import random
import string
import time

import requests

ALLOWED_BUCKETS = ('avatars', 'covers', 'kid-photos')
ALLOWED_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'image/webp')


class StorageError(Exception):
    pass


class StorageService:
    """Uploads files to the hosted storage platform's public buckets."""

    def __init__(self, base_url, service_key, session=None, timeout=30):
        self.base_url = (base_url or '').rstrip('/')
        self.service_key = service_key
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    @property
    def configured(self):
        return bool(self.base_url and self.service_key)

    @staticmethod
    def build_object_path(user_id, filename):
        ext = filename.rsplit('.', 1)[-1].lower() if '.' in (filename or '') else 'jpg'
        timestamp = int(time.time() * 1000)
        suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
        return f"{user_id or 'anonymous'}/{timestamp}-{suffix}.{ext}"

    def public_url(self, bucket, path):
        return f"{self.base_url}/storage/v1/object/public/{bucket}/{path}"

    def upload(self, bucket, path, content, content_type):
        if not self.configured:
            raise StorageError('Storage is not configured')

        try:
            response = self.session.post(
                f"{self.base_url}/storage/v1/object/{bucket}/{path}",
                data=content,
                headers={
                    'Authorization': f'Bearer {self.service_key}',
                    'apikey': self.service_key,
                    'Content-Type': content_type,
                    'x-upsert': 'false',
                },
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            self.logger.error(f"Upload to {bucket}/{path} failed: {str(e)}")
            raise StorageError('Failed to upload file') from e

        self.logger.info(f"Uploaded {len(content)} bytes to {bucket}/{path}")
        return self.public_url(bucket, path)
