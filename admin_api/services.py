"""Back-office operations for platform admins.

Permission checks happen in the views (``IsAdminRole``); functions here take the
acting admin only where the operation needs it (self-protection, audit logs).
"""

import logging
from typing import List

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Sum

from chat_api.models import Session
from groups_api.models import Group, GroupMember
from listeners_api import services as listeners
from listeners_api.models import ListenerApplication
from meetings_api.models import Meeting
from peerconnect_server.exceptions import BadRequestError, NotFoundError
from resources_api import services as resources
from resources_api.models import Resource
from summaries_api.models import GroupSummary, SessionSummary

logger = logging.getLogger('admin_api')

User = get_user_model()

TOP_DOWNLOADED_LIMIT = 10


# ---------- Statistics ----------

def dashboard_stats() -> dict:
    return {
        'total_users': User.objects.count(),
        'total_listeners': User.objects.filter(role=User.Role.LISTENER).count(),
        'total_admins': User.objects.filter(role=User.Role.ADMIN).count(),
        'pending_applications': ListenerApplication.objects.filter(status=ListenerApplication.Status.PENDING).count(),
        'pending_resources': Resource.objects.filter(is_approved=False).count(),
        'active_groups': Group.objects.filter(is_active=True).count(),
        'total_sessions': Session.objects.count(),
        'total_resources': Resource.objects.count(),
    }


def system_stats() -> dict:
    return {
        'total_users': User.objects.count(),
        'total_listeners': User.objects.filter(role=User.Role.LISTENER).count(),
        'total_groups': Group.objects.count(),
        'total_sessions': Session.objects.count(),
        'total_resources': Resource.objects.count(),
        'listener_applications': listeners.application_stats(),
    }


# ---------- Users ----------

def list_users(role=None):
    qs = User.objects.all()
    if role:
        qs = qs.filter(role=role.upper())
    return qs.order_by('-date_joined')


def get_user(user_id):
    user = User.objects.filter(user_id=user_id).first()
    if user is None:
        raise NotFoundError('User not found')
    return user


def update_user_role(admin, user_id, role: str):
    if str(admin.pk) == str(user_id):
        raise BadRequestError('Cannot change your own role')
    user = get_user(user_id)
    user.role = role
    if role == User.Role.LISTENER:
        # A newly promoted listener still needs approval
        user.is_approved = False
    user.save(update_fields=['role', 'is_approved', 'last_modified'])
    logger.info(f"[admin] User {user_id} role updated to {role} by admin {admin.user_id}")
    return user


def update_user_approval(admin, user_id, is_approved: bool):
    user = get_user(user_id)
    if user.role != User.Role.LISTENER:
        raise BadRequestError('Only listeners can have approval status')
    user.is_approved = is_approved
    user.save(update_fields=['is_approved', 'last_modified'])
    logger.info(f"[admin] User {user_id} approval set to {is_approved} by admin {admin.user_id}")
    return user


def delete_user(admin, user_id) -> None:
    if str(admin.pk) == str(user_id):
        raise BadRequestError('Cannot delete your own account')
    user = get_user(user_id)
    user.delete()
    logger.info(f"[admin] User {user_id} deleted by admin {admin.user_id}")


# ---------- Groups ----------

def _groups():
    return Group.objects.select_related('topic', 'leader').annotate(members_total=Count('members'))


def list_groups():
    return _groups().order_by('-created_at')


def get_group(group_id) -> Group:
    group = _groups().filter(group_id=group_id).first()
    if group is None:
        raise NotFoundError('Group not found')
    return group


def update_group_status(admin, group_id, is_active: bool) -> Group:
    group = get_group(group_id)
    group.is_active = is_active
    group.save(update_fields=['is_active', 'updated_at'])
    logger.info(f"[admin] Group {group_id} active={is_active} set by admin {admin.user_id}")
    return group


def delete_group(admin, group_id) -> None:
    group = get_group(group_id)
    with transaction.atomic():
        Meeting.objects.filter(group=group).delete()
        group.delete()
    logger.info(f"[admin] Group {group_id} deleted by admin {admin.user_id}")


def assign_group_leader(admin, group_id, listener_id) -> Group:
    """Make an approved listener the group's leader and give them the HEAD role."""
    group = get_group(group_id)
    listener = User.objects.filter(user_id=listener_id).first()
    if listener is None:
        raise NotFoundError('Listener not found')
    if listener.role != User.Role.LISTENER:
        raise BadRequestError('User must be a listener to be assigned as group leader')
    if not listener.is_approved:
        raise BadRequestError('Listener must be approved to be assigned as group leader')

    with transaction.atomic():
        Group.objects.select_for_update().filter(group_id=group.group_id).first()
        member = GroupMember.objects.filter(group=group, user=listener).first()
        if member is None:
            if group.is_full:
                raise BadRequestError('Group is full')
            GroupMember.objects.create(group=group, user=listener, role=GroupMember.Role.HEAD)
        elif member.role == GroupMember.Role.MEMBER:
            member.role = GroupMember.Role.HEAD
            member.save(update_fields=['role'])
        group.leader = listener
        group.save(update_fields=['leader', 'updated_at'])
    logger.info(f"[admin] Group {group_id} leader set to {listener_id} by admin {admin.user_id}")
    return get_group(group_id)


def topic_match_score(group_topic_name: str, listener_topic_names) -> int:
    """How many of the listener's topic names appear in the group's topic name."""
    group_topic = group_topic_name.lower()
    return sum(1 for name in listener_topic_names if name.lower() in group_topic)


def suitable_leaders(group_id) -> List[dict]:
    group = get_group(group_id)
    candidates = list(
        User.objects.filter(role=User.Role.LISTENER, is_approved=True)
        .annotate(current_groups=Count('led_groups', distinct=True))
        .prefetch_related('topics')
        .order_by('date_joined')
    )
    applications = {
        app.user_id: app
        for app in ListenerApplication.objects.filter(
            user_id__in=[c.user_id for c in candidates]
        ).prefetch_related('topics')
    }

    leaders = []
    for listener in candidates:
        application = applications.get(listener.user_id)
        names = {t.name for t in listener.topics.all()}
        if application is not None:
            names.update(t.name for t in application.topics.all())
        score = topic_match_score(group.topic.name, names)
        if score == 0:
            continue
        leaders.append({
            'user_id': str(listener.user_id),
            'first_name': listener.first_name,
            'last_name': listener.last_name,
            'email': listener.email,
            'profile_picture': listener.profile_picture,
            'bio': listener.bio,
            'experience': application.experience if application else None,
            'motivation': application.motivation if application else None,
            'topics': sorted(names),
            'topic_match_score': score,
            'current_groups': listener.current_groups,
        })
    # Best match first; among equals prefer listeners leading fewer groups
    leaders.sort(key=lambda leader: (-leader['topic_match_score'], leader['current_groups']))
    return leaders


# ---------- Resources ----------

def list_resources():
    return Resource.objects.select_related('topic', 'uploaded_by').order_by('-created_at')


def get_resource(resource_id) -> Resource:
    resource = list_resources().filter(resource_id=resource_id).first()
    if resource is None:
        raise NotFoundError('Resource not found')
    return resource


def update_resource_status(admin, resource_id, is_approved: bool) -> Resource:
    resource = get_resource(resource_id)
    if resource.is_approved:
        raise BadRequestError('Resource has already been reviewed')
    return resources.set_approval(admin, resource_id, is_approved)


def delete_resource(admin, resource_id) -> None:
    resources.delete_resource(admin, resource_id)


def resource_stats() -> dict:
    totals = Resource.objects.aggregate(total=Count('resource_id'), downloads=Sum('download_count'))
    approved = Resource.objects.filter(is_approved=True).count()
    top = list(list_resources().filter(download_count__gt=0).order_by('-download_count')[:TOP_DOWNLOADED_LIMIT])
    return {
        'total_resources': totals['total'],
        'approved_resources': approved,
        'pending_resources': totals['total'] - approved,
        'total_downloads': totals['downloads'] or 0,
        'top_downloaded': top,
    }


# ---------- Sessions and summaries ----------

def _sessions():
    return Session.objects.select_related('seeker', 'listener', 'topic').annotate(message_count=Count('messages'))


def list_sessions(status=None):
    qs = _sessions()
    if status:
        qs = qs.filter(status=status.upper())
    return qs.order_by('-start_time')


def get_session(session_id) -> Session:
    session = _sessions().filter(session_id=session_id).first()
    if session is None:
        raise NotFoundError('Session not found')
    return session


def delete_session(admin, session_id) -> None:
    get_session(session_id).delete()
    logger.info(f"[admin] Session {session_id} deleted by admin {admin.user_id}")


def list_session_summaries():
    return SessionSummary.objects.select_related('session', 'session__topic').order_by('-created_at')


def list_group_summaries():
    return GroupSummary.objects.select_related('group', 'group__topic').order_by('-created_at')


def delete_session_summary(admin, summary_id) -> None:
    deleted, _ = SessionSummary.objects.filter(summary_id=summary_id).delete()
    if not deleted:
        raise NotFoundError('Session summary not found')
    logger.info(f"[admin] Session summary {summary_id} deleted by admin {admin.user_id}")


def delete_group_summary(admin, summary_id) -> None:
    deleted, _ = GroupSummary.objects.filter(summary_id=summary_id).delete()
    if not deleted:
        raise NotFoundError('Group summary not found')
    logger.info(f"[admin] Group summary {summary_id} deleted by admin {admin.user_id}")
