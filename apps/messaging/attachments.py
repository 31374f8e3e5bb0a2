# apps/messaging/attachments.py
import logging

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from django.conf import settings

from .content import FILE, IMAGE
from .exceptions import TransientError

logger = logging.getLogger(__name__)


def upload_attachment(uploaded_file, user):
    """Store an uploaded file on Cloudinary and describe it for an image or file message."""
    content_type = getattr(uploaded_file, 'content_type', '') or ''
    try:
        result = cloudinary.uploader.upload(
            uploaded_file,
            resource_type='auto',
            folder=f"{settings.MESSAGING['ATTACHMENT_FOLDER']}/{user.pk}",
            use_filename=True,
            unique_filename=True,
        )
    except CloudinaryError as exc:
        logger.warning('Attachment upload failed for user %s: %s', user.pk, exc)
        raise TransientError('Could not upload the file, please try again')

    logger.info('Attachment uploaded for user %s: %s', user.pk, result.get('public_id'))
    return {
        'message_type': IMAGE if content_type.startswith('image/') else FILE,
        'file_url': result['secure_url'],
        'file_type': content_type,
        'file_name': uploaded_file.name,
        'file_size': result.get('bytes', uploaded_file.size),
    }
