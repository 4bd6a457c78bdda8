"""
Tests for meetings_api: who may manage meetings, the lifecycle transitions and
the end-of-meeting summary.
"""
from datetime import timedelta
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from chat_api.models import Message
from groups_api.models import Group, GroupMember
from meetings_api import services
from meetings_api.models import Meeting
from notifications_api.models import Notification, NotificationType
from peerconnect_server.exceptions import ForbiddenError
from summaries_api.models import GroupSummary
from summaries_api.parsing import GroupSummaryData
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


@patch('meetings_api.services.realtime')
class MeetingLifecycleTest(TestCase):
    def setUp(self):
        self.topic = Topic.objects.create(name='Grief')
        self.leader = make_user('leader@example.com', role='LISTENER', is_approved=True)
        self.member = make_user('member@example.com')
        self.group = Group.objects.create(name='Circle', topic=self.topic, leader=self.leader)
        GroupMember.objects.create(group=self.group, user=self.leader, role='ADMIN')
        GroupMember.objects.create(group=self.group, user=self.member, role='MEMBER')
        self.start = timezone.now() + timedelta(days=1)

    def _create(self, user=None):
        return services.create_meeting(user or self.leader, {
            'group_id': self.group.group_id, 'title': 'Weekly check-in', 'scheduled_start_time': self.start,
        })

    def test_leader_creates_and_members_are_notified(self, mock_realtime):
        meeting = self._create()
        self.assertEqual(meeting.status, Meeting.Status.SCHEDULED)
        self.assertTrue(Notification.objects.filter(
            user=self.member, type=NotificationType.MEETING_UPDATE, related_id=str(meeting.meeting_id)
        ).exists())
        mock_realtime.notify_new_meeting.assert_called_once_with(meeting)

    def test_plain_member_cannot_create(self, mock_realtime):
        with self.assertRaises(ForbiddenError):
            self._create(self.member)

    def test_group_admin_member_can_manage(self, mock_realtime):
        admin_member = make_user('admin-member@example.com')
        GroupMember.objects.create(group=self.group, user=admin_member, role='ADMIN')
        meeting = self._create(admin_member)
        self.assertEqual(services.start_meeting(meeting.meeting_id, admin_member).status, Meeting.Status.ACTIVE)

    def test_start_requires_scheduled(self, mock_realtime):
        meeting = self._create()
        services.start_meeting(meeting.meeting_id, self.leader)
        with self.assertRaises(ForbiddenError):
            services.start_meeting(meeting.meeting_id, self.leader)

    def test_update_cannot_change_status(self, mock_realtime):
        meeting = self._create()
        updated = services.update_meeting(meeting.meeting_id, self.leader, {'status': 'COMPLETED', 'title': 'Moved'})
        meeting.refresh_from_db()
        self.assertEqual((updated.title, meeting.status), ('Moved', Meeting.Status.SCHEDULED))
        with self.assertRaises(ForbiddenError):
            services.end_meeting(meeting.meeting_id, self.leader)

    def test_end_requires_active(self, mock_realtime):
        meeting = self._create()
        with self.assertRaises(ForbiddenError):
            services.end_meeting(meeting.meeting_id, self.leader)

    @patch('summaries_api.services.storage.upload_bytes', return_value={'url': 'https://cdn.example.com/m.pdf'})
    @patch('summaries_api.services.ai_client.generate_group_summary')
    def test_end_generates_summary(self, mock_generate, mock_upload, mock_realtime):
        mock_generate.return_value = GroupSummaryData(['coping'], 'warm', ['journal'])
        meeting = self._create()
        services.start_meeting(meeting.meeting_id, self.leader)
        Message.objects.create(sender=self.member, meeting=meeting, content='Thanks everyone')

        meeting = services.end_meeting(meeting.meeting_id, self.leader)

        meeting.refresh_from_db()
        self.assertEqual(meeting.status, Meeting.Status.COMPLETED)
        self.assertIsNotNone(meeting.actual_end_time)
        self.assertEqual(meeting.summary_pdf_url, 'https://cdn.example.com/m.pdf')
        self.assertEqual(GroupSummary.objects.get(group=self.group).pdf_url, 'https://cdn.example.com/m.pdf')
        self.assertEqual(mock_upload.call_args.kwargs['folder'], 'peerconnect/meetings')
        self.assertEqual(mock_upload.call_args.kwargs['public_id'], f'meeting_{meeting.meeting_id}')
        mock_realtime.notify_meeting_ended.assert_called_once()

    @patch('summaries_api.services.ai_client.generate_group_summary', side_effect=RuntimeError('down'))
    def test_summary_failure_does_not_block_end(self, mock_generate, mock_realtime):
        meeting = self._create()
        services.start_meeting(meeting.meeting_id, self.leader)
        Message.objects.create(sender=self.member, meeting=meeting, content='hello')
        meeting = services.end_meeting(meeting.meeting_id, self.leader)
        self.assertEqual(meeting.status, Meeting.Status.COMPLETED)
        self.assertIsNone(meeting.summary_pdf_url)


@patch('meetings_api.services.realtime')
class MeetingViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.topic = Topic.objects.create(name='Stress')
        self.leader = make_user('leader@example.com', role='LISTENER', is_approved=True)
        self.group = Group.objects.create(name='Desk', topic=self.topic, leader=self.leader)
        GroupMember.objects.create(group=self.group, user=self.leader, role='ADMIN')
        self.client.force_authenticate(user=self.leader)

    def test_create_list_update_delete(self, mock_realtime):
        now = timezone.now()
        for offset in (1, 2):
            resp = self.client.post(reverse('meeting-create'), {
                'group_id': str(self.group.group_id),
                'title': f'Meeting {offset}',
                'scheduled_start_time': (now + timedelta(days=offset)).isoformat(),
                'agenda': ['Intro', 'Sharing'],
            }, format='json')
            self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        resp = self.client.get(reverse('meeting-group-list', args=[self.group.group_id]))
        self.assertEqual([m['title'] for m in resp.data], ['Meeting 2', 'Meeting 1'])

        meeting_id = resp.data[0]['meeting_id']
        resp = self.client.put(reverse('meeting-detail', args=[meeting_id]), {'title': 'Renamed'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['title'], 'Renamed')

        resp = self.client.delete(reverse('meeting-detail', args=[meeting_id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(Meeting.objects.filter(meeting_id=meeting_id).exists())

    def test_end_before_start_rejected(self, mock_realtime):
        start = timezone.now() + timedelta(days=1)
        resp = self.client.post(reverse('meeting-create'), {
            'group_id': str(self.group.group_id),
            'title': 'Bad',
            'scheduled_start_time': start.isoformat(),
            'scheduled_end_time': (start - timedelta(hours=1)).isoformat(),
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_summary_endpoint_without_summary(self, mock_realtime):
        meeting = Meeting.objects.create(
            group=self.group, title='Solo', scheduled_start_time=timezone.now(), created_by=self.leader
        )
        resp = self.client.get(reverse('meeting-summary', args=[meeting.meeting_id]))
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIsNone(resp.data['summary_pdf_url'])
        self.assertIsNone(resp.data['group_summary'])
