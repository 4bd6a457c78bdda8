"""Object storage helpers backed by Cloudinary.

Every upload returns the Cloudinary response subset the rest of the project
relies on: ``url``, ``public_id``, ``resource_type``, ``bytes`` and ``format``.
"""

import base64
import binascii
import io
import logging
import time
from typing import Any, Dict, Iterable, List, Optional

import cloudinary
import cloudinary.api
import cloudinary.uploader
import cloudinary.utils
from django.conf import settings

from peerconnect_server.exceptions import BadRequestError, InternalError, NotFoundError

logger = logging.getLogger('storage')

ALLOWED_RESOURCE_TYPES = ('image', 'video', 'raw', 'auto')


class StorageError(InternalError):
    default_detail = 'File storage operation failed.'
    default_code = 'storage_error'


def _configure() -> None:
    conf = settings.CLOUDINARY_STORAGE
    if not conf.get('CLOUD_NAME'):
        raise StorageError('Cloudinary is not configured.')
    cloudinary.config(
        cloud_name=conf['CLOUD_NAME'],
        api_key=conf.get('API_KEY'),
        api_secret=conf.get('API_SECRET'),
        secure=True,
    )


def _result(resp: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'url': resp.get('secure_url') or resp.get('url'),
        'public_id': resp.get('public_id'),
        'resource_type': resp.get('resource_type'),
        'bytes': resp.get('bytes'),
        'format': resp.get('format'),
    }


def upload_file(fileobj, folder: Optional[str] = None, public_id: Optional[str] = None,
                resource_type: str = 'auto', overwrite: bool = True) -> Dict[str, Any]:
    """Upload a file-like object (or path / URL) and return the normalized result."""
    if resource_type not in ALLOWED_RESOURCE_TYPES:
        raise BadRequestError(f'Unsupported resource type: {resource_type}')
    _configure()
    options = {'resource_type': resource_type, 'overwrite': overwrite}
    if folder:
        options['folder'] = folder
    if public_id:
        options['public_id'] = public_id
    try:
        resp = cloudinary.uploader.upload(fileobj, **options)
    except Exception as e:
        logger.exception(f"[storage] Upload failed folder={folder} public_id={public_id}: {e}")
        raise StorageError(f'Upload failed: {e}') from e
    logger.info(f"[storage] Uploaded {resp.get('public_id')} ({resp.get('bytes')} bytes)")
    return _result(resp)


def upload_bytes(data: bytes, folder: str, public_id: str, resource_type: str = 'raw') -> Dict[str, Any]:
    """Upload an in-memory buffer such as a rendered PDF."""
    return upload_file(io.BytesIO(data), folder=folder, public_id=public_id, resource_type=resource_type)


def upload_base64(encoded: str, folder: Optional[str] = None, public_id: Optional[str] = None,
                  resource_type: str = 'auto') -> Dict[str, Any]:
    """Accepts raw base64 or a ``data:<mime>;base64,`` URI."""
    payload = encoded.split(',', 1)[1] if encoded.startswith('data:') else encoded
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise BadRequestError('Invalid base64 payload.') from e
    return upload_file(io.BytesIO(raw), folder=folder, public_id=public_id, resource_type=resource_type)


def upload_multiple(files: Iterable, folder: Optional[str] = None) -> List[Dict[str, Any]]:
    return [upload_file(f, folder=folder) for f in files]


def delete_file(public_id: str, resource_type: str = 'image') -> bool:
    _configure()
    try:
        resp = cloudinary.uploader.destroy(public_id, resource_type=resource_type)
    except Exception as e:
        logger.exception(f"[storage] Delete failed for {public_id}: {e}")
        raise StorageError(f'Delete failed: {e}') from e
    return resp.get('result') == 'ok'


def get_file_info(public_id: str, resource_type: str = 'image') -> Dict[str, Any]:
    _configure()
    try:
        return cloudinary.api.resource(public_id, resource_type=resource_type)
    except cloudinary.api.NotFound as e:
        raise NotFoundError('File not found.') from e
    except Exception as e:
        logger.exception(f"[storage] Info lookup failed for {public_id}: {e}")
        raise StorageError(f'Lookup failed: {e}') from e


def build_upload_signature(folder: Optional[str] = None, public_id: Optional[str] = None) -> Dict[str, Any]:
    """Signed parameters for a direct browser upload."""
    _configure()
    params = {'timestamp': int(time.time())}
    if folder:
        params['folder'] = folder
    if public_id:
        params['public_id'] = public_id
    conf = settings.CLOUDINARY_STORAGE
    signature = cloudinary.utils.api_sign_request(params, conf['API_SECRET'])
    return {
        **params,
        'signature': signature,
        'api_key': conf['API_KEY'],
        'cloud_name': conf['CLOUD_NAME'],
    }


def build_transformation_url(public_id: str, **options) -> str:
    _configure()
    url, _ = cloudinary.utils.cloudinary_url(public_id, secure=True, **options)
    return url
