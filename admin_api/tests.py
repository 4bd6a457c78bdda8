"""
Tests for admin_api: dashboard statistics, user and group moderation, leader
suggestions and the resource, session and summary back office.
"""
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from admin_api import services
from chat_api.models import Message, Session
from groups_api.models import Group, GroupMember
from listeners_api.models import ListenerApplication
from meetings_api.models import Meeting
from peerconnect_server.exceptions import BadRequestError, NotFoundError
from resources_api.models import Resource
from summaries_api.models import SessionSummary
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    extra.setdefault('email_verified', True)
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', **extra
    )


class TopicMatchScoreTest(SimpleTestCase):
    def test_counts_listener_topics_found_in_group_topic(self):
        self.assertEqual(services.topic_match_score('Anxiety', ['anxiety', 'Grief']), 1)
        self.assertEqual(services.topic_match_score('Work Anxiety', ['Anxiety', 'work']), 2)
        self.assertEqual(services.topic_match_score('Sleep', ['Grief']), 0)


class AdminServiceTest(TestCase):
    def setUp(self):
        self.admin = make_user('admin@example.com', role='ADMIN')
        self.topic = Topic.objects.create(name='Anxiety')
        self.other_topic = Topic.objects.create(name='Grief')
        self.user = make_user('user@example.com')

    def test_dashboard_stats(self):
        make_user('listener@example.com', role='LISTENER', is_approved=True)
        Group.objects.create(name='Circle', topic=self.topic)
        Group.objects.create(name='Closed', topic=self.topic, is_active=False)
        Resource.objects.create(
            title='Guide', type='PDF', file_url='https://cdn.example.com/g.pdf', topic=self.topic, uploaded_by=self.admin
        )
        stats = services.dashboard_stats()
        self.assertEqual(stats['total_users'], 3)
        self.assertEqual((stats['total_listeners'], stats['total_admins']), (1, 1))
        self.assertEqual(stats['active_groups'], 1)
        self.assertEqual((stats['total_resources'], stats['pending_resources']), (1, 1))
        self.assertEqual(services.system_stats()['listener_applications']['total'], 0)

    def test_role_change_rules(self):
        with self.assertRaises(BadRequestError):
            services.update_user_role(self.admin, self.admin.user_id, 'USER')

        self.user.is_approved = True
        self.user.save(update_fields=['is_approved'])
        updated = services.update_user_role(self.admin, self.user.user_id, 'LISTENER')
        self.assertEqual((updated.role, updated.is_approved), ('LISTENER', False))

    def test_approval_only_for_listeners(self):
        with self.assertRaises(BadRequestError):
            services.update_user_approval(self.admin, self.user.user_id, True)
        listener = make_user('listener@example.com', role='LISTENER')
        self.assertTrue(services.update_user_approval(self.admin, listener.user_id, True).is_approved)

    def test_delete_user(self):
        with self.assertRaises(BadRequestError):
            services.delete_user(self.admin, self.admin.user_id)
        services.delete_user(self.admin, self.user.user_id)
        self.assertFalse(Custom_User.objects.filter(user_id=self.user.user_id).exists())
        with self.assertRaises(NotFoundError):
            services.get_user(self.user.user_id)

    def test_delete_group_removes_its_meetings(self):
        group = Group.objects.create(name='Circle', topic=self.topic)
        Meeting.objects.create(group=group, title='Weekly', scheduled_start_time=timezone.now(), created_by=self.admin)
        services.delete_group(self.admin, group.group_id)
        self.assertFalse(Group.objects.filter(group_id=group.group_id).exists())
        self.assertEqual(Meeting.objects.count(), 0)

    def test_assign_leader(self):
        group = Group.objects.create(name='Circle', topic=self.topic)
        with self.assertRaises(NotFoundError):
            services.assign_group_leader(self.admin, group.group_id, '00000000-0000-0000-0000-000000000000')
        with self.assertRaises(BadRequestError):
            services.assign_group_leader(self.admin, group.group_id, self.user.user_id)
        pending = make_user('pending@example.com', role='LISTENER', is_approved=False)
        with self.assertRaises(BadRequestError):
            services.assign_group_leader(self.admin, group.group_id, pending.user_id)

        listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        GroupMember.objects.create(group=group, user=listener, role='MEMBER')
        group = services.assign_group_leader(self.admin, group.group_id, listener.user_id)
        self.assertEqual(group.leader, listener)
        self.assertEqual(GroupMember.objects.get(group=group, user=listener).role, 'HEAD')

    def test_assign_leader_respects_capacity(self):
        group = Group.objects.create(name='Tiny', topic=self.topic, max_members=1)
        GroupMember.objects.create(group=group, user=self.user, role='MEMBER')
        listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        with self.assertRaises(BadRequestError):
            services.assign_group_leader(self.admin, group.group_id, listener.user_id)
        group.refresh_from_db()
        self.assertEqual(group.members.count(), 1)
        self.assertIsNone(group.leader)

        # An existing member can still be promoted in a full group
        GroupMember.objects.filter(group=group).delete()
        GroupMember.objects.create(group=group, user=listener, role='MEMBER')
        group = services.assign_group_leader(self.admin, group.group_id, listener.user_id)
        self.assertEqual((group.leader, group.members.count()), (listener, 1))

    def test_suitable_leaders(self):
        group = Group.objects.create(name='Circle', topic=self.topic)
        busy = make_user('busy@example.com', role='LISTENER', is_approved=True)
        busy.topics.set([self.topic])
        Group.objects.create(name='Other', topic=self.other_topic, leader=busy)
        free = make_user('free@example.com', role='LISTENER', is_approved=True)
        application = ListenerApplication.objects.create(user=free, bio='b', experience='e', motivation='m')
        application.topics.set([self.topic, self.other_topic])
        unrelated = make_user('unrelated@example.com', role='LISTENER', is_approved=True)
        unrelated.topics.set([self.other_topic])
        make_user('unapproved@example.com', role='LISTENER').topics.set([self.topic])

        leaders = services.suitable_leaders(group.group_id)

        self.assertEqual([l['user_id'] for l in leaders], [str(free.user_id), str(busy.user_id)])
        self.assertEqual(leaders[0]['topics'], ['Anxiety', 'Grief'])
        self.assertEqual((leaders[0]['current_groups'], leaders[1]['current_groups']), (0, 1))

    @patch('resources_api.services.realtime')
    @patch('notifications_api.services.realtime.push_notification')
    def test_resource_status_and_stats(self, mock_push, mock_realtime):
        resource = Resource.objects.create(
            title='Guide', type='PDF', file_url='https://cdn.example.com/g.pdf', topic=self.topic, uploaded_by=self.user
        )
        approved = services.update_resource_status(self.admin, resource.resource_id, True)
        self.assertTrue(approved.is_approved)
        with self.assertRaises(BadRequestError):
            services.update_resource_status(self.admin, resource.resource_id, False)

        Resource.objects.filter(resource_id=resource.resource_id).update(download_count=4)
        Resource.objects.create(
            title='Draft', type='ARTICLE', file_url='https://cdn.example.com/d', topic=self.topic, uploaded_by=self.user
        )
        stats = services.resource_stats()
        self.assertEqual(
            (stats['total_resources'], stats['approved_resources'], stats['pending_resources'], stats['total_downloads']),
            (2, 1, 1, 4),
        )
        self.assertEqual([r.title for r in stats['top_downloaded']], ['Guide'])

    def test_sessions_and_summaries(self):
        listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        session = Session.objects.create(seeker=self.user, listener=listener, topic=self.topic, start_time=timezone.now())
        Message.objects.create(sender=self.user, session=session, content='hello')
        Message.objects.create(sender=listener, session=session, content='hi')
        self.assertEqual(services.get_session(session.session_id).message_count, 2)

        summary = SessionSummary.objects.create(session=session, emotional_tone='calm')
        services.delete_session_summary(self.admin, summary.summary_id)
        with self.assertRaises(NotFoundError):
            services.delete_session_summary(self.admin, summary.summary_id)

        services.delete_session(self.admin, session.session_id)
        self.assertEqual(Message.objects.count(), 0)


class AdminViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = make_user('admin@example.com', role='ADMIN')
        self.topic = Topic.objects.create(name='Anxiety')
        self.client.force_authenticate(user=self.admin)

    def test_non_admin_is_forbidden(self):
        self.client.force_authenticate(user=make_user('user@example.com'))
        resp = self.client.get(reverse('admin-stats'))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_stats_endpoints(self):
        resp = self.client.get(reverse('admin-stats'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['total_admins'], 1)
        resp = self.client.get(reverse('admin-stats-applications'))
        self.assertEqual(resp.data, {'total': 0, 'pending': 0, 'approved': 0, 'rejected': 0})

    def test_user_role_endpoint(self):
        user = make_user('user@example.com')
        resp = self.client.put(reverse('admin-user-role', args=[user.user_id]), {'role': 'LISTENER'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['role'], 'LISTENER')

        resp = self.client.put(reverse('admin-user-role', args=[self.admin.user_id]), {'role': 'USER'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.put(reverse('admin-user-role', args=[user.user_id]), {'role': 'ROOT'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('notifications_api.services.realtime.push_notification')
    def test_review_routes(self, mock_push):
        applicants = [make_user(f'applicant{i}@example.com') for i in range(2)]
        applications = [
            ListenerApplication.objects.create(user=u, bio='b', experience='e', motivation='m') for u in applicants
        ]

        resp = self.client.get(reverse('admin-applications-pending'))
        self.assertEqual(len(resp.data), 2)

        resp = self.client.put(
            reverse('admin-application-status', args=[applications[0].application_id]),
            {'status': 'APPROVED', 'admin_notes': 'Welcome'}, format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['status'], 'APPROVED')

        resp = self.client.post(
            reverse('admin-application-review', args=[applications[1].application_id]),
            {'status': 'REJECTED'}, format='json',
        )
        self.assertEqual(resp.data['status'], 'REJECTED')

        resp = self.client.post(
            reverse('admin-application-review', args=[applications[1].application_id]),
            {'status': 'APPROVED'}, format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

        resp = self.client.get(reverse('admin-applications'), {'status': 'approved'})
        self.assertEqual(len(resp.data), 1)

    def test_group_endpoints(self):
        group = Group.objects.create(name='Circle', topic=self.topic)
        resp = self.client.put(reverse('admin-group-status', args=[group.group_id]), {'is_active': False}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data['is_active'])
        self.assertEqual(resp.data['member_count'], 0)

        resp = self.client.get(reverse('admin-group-suitable-leaders', args=[group.group_id]))
        self.assertEqual(resp.data, [])

        resp = self.client.delete(reverse('admin-group-detail', args=[group.group_id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        resp = self.client.get(reverse('admin-group-detail', args=[group.group_id]))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_resource_stats_endpoint(self):
        resp = self.client.get(reverse('admin-resource-stats'))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['total_downloads'], 0)
        self.assertEqual(resp.data['top_downloaded'], [])
