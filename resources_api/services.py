"""Shared learning resources uploaded by listeners and reviewed by admins."""

import logging
import re

from django.contrib.auth import get_user_model
from django.db.models import F, Q

from chat_api import realtime
from notifications_api import services as notifications
from peerconnect_server.exceptions import ForbiddenError, NotFoundError
from resources_api.models import Resource
from topics_api.models import Topic

logger = logging.getLogger('resources_api')

User = get_user_model()

FILE_EXTENSIONS = {
    Resource.Type.PDF: 'pdf',
    Resource.Type.VIDEO: 'mp4',
    Resource.Type.AUDIO: 'mp3',
    Resource.Type.ARTICLE: 'html',
}
CONTENT_TYPES = {
    Resource.Type.PDF: 'application/pdf',
    Resource.Type.VIDEO: 'video/mp4',
    Resource.Type.AUDIO: 'audio/mpeg',
    Resource.Type.ARTICLE: 'text/html',
}
UPDATABLE_FIELDS = ('title', 'description', 'is_approved')


def _resources():
    return Resource.objects.select_related('topic', 'uploaded_by')


def _get(resource_id) -> Resource:
    resource = _resources().filter(resource_id=resource_id).first()
    if resource is None:
        raise NotFoundError('Resource not found')
    return resource


def _can_modify(user, resource) -> bool:
    return user.role == User.Role.ADMIN or (
        user.role == User.Role.LISTENER and resource.uploaded_by_id == user.pk
    )


def file_name_for(resource) -> str:
    """``My Guide!`` -> ``My-Guide.pdf``"""
    title = re.sub(r'[^a-zA-Z0-9\s-]', '', resource.title)
    title = re.sub(r'\s+', '-', title)
    return f"{title}.{FILE_EXTENSIONS.get(resource.type, 'txt')}"


def content_type_for(resource) -> str:
    return CONTENT_TYPES.get(resource.type, 'application/octet-stream')


def create_resource(user, data: dict) -> Resource:
    if user.role not in (User.Role.LISTENER, User.Role.ADMIN):
        raise ForbiddenError('Only listeners and admins can upload resources')
    if user.role == User.Role.LISTENER and not user.is_approved:
        raise ForbiddenError('Listener must be approved to upload resources')
    topic = Topic.objects.filter(topic_id=data['topic_id']).first()
    if topic is None:
        raise NotFoundError('Topic not found')

    is_approved = user.role == User.Role.ADMIN
    resource = Resource.objects.create(
        title=data['title'],
        description=data.get('description', ''),
        type=data['type'],
        file_url=data['file_url'],
        topic=topic,
        uploaded_by=user,
        is_approved=is_approved,
    )
    logger.info(f'[resources] Resource "{resource.title}" uploaded by {user.user_id} (approved: {is_approved})')
    return resource


def update_resource(user, resource_id, data: dict) -> Resource:
    resource = _get(resource_id)
    if not _can_modify(user, resource):
        raise ForbiddenError('You can only update your own resources or must be an admin')
    if 'is_approved' in data and user.role != User.Role.ADMIN:
        raise ForbiddenError('Only admins can approve resources')
    changed = [name for name in UPDATABLE_FIELDS if name in data]
    for name in changed:
        setattr(resource, name, data[name])
    if changed:
        resource.save(update_fields=changed + ['updated_at'])
    logger.info(f"[resources] Resource {resource_id} updated by {user.user_id}")
    return resource


def _announce(resource) -> None:
    """Tell users following the topic about a newly approved resource."""
    users = User.objects.filter(topics=resource.topic).exclude(user_id=resource.uploaded_by_id)
    notifications.notify_new_resource(resource, users)
    realtime.notify_new_resource(resource)


def set_approval(admin, resource_id, is_approved: bool) -> Resource:
    if admin.role != User.Role.ADMIN:
        raise ForbiddenError('Only admins can approve resources')
    resource = _get(resource_id)
    resource.is_approved = is_approved
    resource.save(update_fields=['is_approved', 'updated_at'])
    logger.info(
        f"[resources] Resource {resource_id} {'approved' if is_approved else 'rejected'} by admin {admin.user_id}"
    )
    if is_approved:
        try:
            _announce(resource)
        except Exception as e:
            logger.error(f"[resources] New resource notifications failed for {resource_id}: {e}")
    return resource


def delete_resource(user, resource_id) -> None:
    resource = _get(resource_id)
    if not _can_modify(user, resource):
        raise ForbiddenError('You can only delete your own resources or must be an admin')
    resource.delete()
    logger.info(f"[resources] Resource {resource_id} deleted by {user.user_id}")


def get_resource(resource_id, user=None) -> Resource:
    """Approved resources only, except for admins and the uploader."""
    resource = _get(resource_id)
    if not resource.is_approved:
        privileged = user is not None and (user.role == User.Role.ADMIN or resource.uploaded_by_id == user.pk)
        if not privileged:
            raise NotFoundError('Resource not found')
    return resource


def resources_by_topic(topic_id, include_unapproved: bool = False):
    qs = _resources().filter(topic_id=topic_id)
    if not include_unapproved:
        qs = qs.filter(is_approved=True)
    return qs.order_by('-created_at')


def list_resources(include_unapproved: bool = False):
    qs = _resources()
    if not include_unapproved:
        qs = qs.filter(is_approved=True)
    return qs.order_by('-created_at')


def pending_resources():
    return _resources().filter(is_approved=False).order_by('created_at')


def increment_download_count(resource_id) -> None:
    try:
        Resource.objects.filter(resource_id=resource_id).update(download_count=F('download_count') + 1)
    except Exception as e:
        logger.error(f"[resources] Download count update failed for {resource_id}: {e}")


def _approved_for(resource_id, action: str) -> Resource:
    resource = _get(resource_id)
    if not resource.is_approved:
        raise ForbiddenError(f'Resource is not approved for {action}')
    return resource


def download_resource(resource_id, user) -> dict:
    resource = _approved_for(resource_id, 'download')
    increment_download_count(resource_id)
    logger.info(f"[resources] Resource {resource_id} downloaded by {user.user_id}")
    return {
        'download_url': resource.file_url,
        'file_name': file_name_for(resource),
        'content_type': content_type_for(resource),
    }


def stream_resource(resource_id, user) -> dict:
    resource = _approved_for(resource_id, 'viewing')
    logger.info(f"[resources] Resource {resource_id} streamed by {user.user_id}")
    return {
        'stream_url': resource.file_url,
        'file_name': file_name_for(resource),
        'content_type': content_type_for(resource),
    }


def search_resources(query: str, topic_id=None):
    qs = _resources().filter(is_approved=True)
    query = (query or '').strip()
    if query:
        qs = qs.filter(Q(title__icontains=query) | Q(description__icontains=query))
    if topic_id:
        qs = qs.filter(topic_id=topic_id)
    return qs.order_by('-download_count', '-created_at')
