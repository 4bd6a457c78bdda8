"""Topic catalogue and per-user topic selection."""

import logging
from typing import Iterable, List

from django.db import IntegrityError, transaction

from peerconnect_server.exceptions import BadRequestError, ConflictError, NotFoundError
from topics_api.models import Topic

logger = logging.getLogger('topics_api')

MIN_TOPICS = 3
MAX_TOPICS = 5


def list_topics():
    return Topic.objects.all().order_by('name')


def get_topic(topic_id) -> Topic:
    topic = Topic.objects.filter(topic_id=topic_id).first()
    if topic is None:
        raise NotFoundError('Topic not found')
    return topic


def create_topic(name: str, description: str = '') -> Topic:
    name = (name or '').strip()
    if not name:
        raise BadRequestError('Topic name is required')
    if Topic.objects.filter(name__iexact=name).exists():
        raise ConflictError('Topic with this name already exists')
    try:
        topic = Topic.objects.create(name=name, description=description or '')
    except IntegrityError as e:
        raise ConflictError('Topic with this name already exists') from e
    logger.info(f"[topics] Created topic {topic.topic_id} ({topic.name})")
    return topic


def validate_topic_ids(topic_ids: Iterable) -> List[Topic]:
    """Return the topics for ``topic_ids`` or raise when the selection is invalid.

    A selection holds between 3 and 5 distinct, existing topics.
    """
    ids = list(dict.fromkeys(str(t) for t in (topic_ids or [])))
    if len(ids) < MIN_TOPICS or len(ids) > MAX_TOPICS:
        raise BadRequestError(f'Please select between {MIN_TOPICS} and {MAX_TOPICS} topics')
    topics = list(Topic.objects.filter(topic_id__in=ids))
    if len(topics) != len(ids):
        raise BadRequestError('One or more selected topics are invalid')
    return topics


def get_topics_for_selection(user) -> List[dict]:
    selected = set(user.topics.values_list('topic_id', flat=True))
    return [
        {
            'topic_id': str(topic.topic_id),
            'name': topic.name,
            'description': topic.description,
            'is_selected': topic.topic_id in selected,
        }
        for topic in list_topics()
    ]


def get_user_topics(user):
    return user.topics.all().order_by('name')


def update_user_topics(user, topic_ids) -> List[Topic]:
    topics = validate_topic_ids(topic_ids)
    with transaction.atomic():
        user.topics.set(topics)
    logger.info(f"[topics] Updated topics for user {user.user_id}: {[t.name for t in topics]}")
    return topics


def initial_topic_selection(user, topic_ids) -> List[Topic]:
    """First selection after sign-up; also marks the profile as completed."""
    if user.profile_completed:
        raise BadRequestError('Initial topic selection already completed')
    topics = validate_topic_ids(topic_ids)
    with transaction.atomic():
        user.topics.set(topics)
        user.profile_completed = True
        user.save(update_fields=['profile_completed', 'last_modified'])
    logger.info(f"[topics] Initial topic selection for user {user.user_id}")
    return topics
