"""
Tests for notifications_api: payload variants, duplicate suppression, the email outbox
and the inbox endpoints.
"""
import pytest
from datetime import timedelta
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from notifications_api import services
from notifications_api.models import EmailOutbox, Notification, NotificationType
from notifications_api.outbox import dispatch, dispatch_pending, enqueue_email
from notifications_api.payloads import (
    ApplicationUpdatePayload,
    GeneralPayload,
    GroupActivityPayload,
    ListenerEscalationPayload,
    MeetingUpdatePayload,
    build_payload,
)
from peerconnect_server.exceptions import BadRequestError
from user_mang.models.custom_user import Custom_User


def make_user(email='user@example.com', **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


SENT = {'sent': True, 'attempts': ['maileroo'], 'reason': None, 'error': None}
NOT_SENT = {'sent': False, 'attempts': ['smtp'], 'reason': 'smtp_failed', 'error': 'connection refused'}


class PayloadTest(TestCase):
    def test_build_payload_general(self):
        payload = build_payload('GENERAL', {'title_text': 'Hello', 'message_text': 'World'})
        self.assertIsInstance(payload, GeneralPayload)
        self.assertEqual(payload.title(), 'Hello')
        self.assertEqual(payload.to_data()['type'], 'GENERAL')

    def test_build_payload_parses_datetime(self):
        payload = build_payload('MEETING_UPDATE', {
            'meeting_id': 'm1', 'meeting_title': 'Weekly', 'group_name': 'Calm',
            'change': 'SCHEDULED', 'scheduled_start_time': '2026-01-05T10:00:00+00:00',
        })
        self.assertIsInstance(payload, MeetingUpdatePayload)
        self.assertIn('2026-01-05 10:00', payload.message())
        self.assertEqual(payload.title(), 'New Meeting Scheduled')

    def test_build_payload_unknown_type(self):
        with self.assertRaises(BadRequestError):
            build_payload('NOPE', {})

    def test_build_payload_missing_fields(self):
        with self.assertRaises(BadRequestError):
            build_payload('NEW_RESOURCE', {'resource_id': 'r1'})

    def test_escalation_relates_to_its_record(self):
        payload = ListenerEscalationPayload(
            group_id='g1', group_name='Calm', activity_description='Flagged content', response_id='r1'
        )
        self.assertEqual(payload.type, NotificationType.GROUP_ACTIVITY)
        self.assertEqual(payload.related_id(), 'r1')
        self.assertEqual(GroupActivityPayload('g1', 'Calm', 'Flagged content').related_id(), 'g1')
        self.assertIsInstance(build_payload('GROUP_ACTIVITY', {
            'group_id': 'g1', 'group_name': 'Calm', 'activity_description': 'x',
        }), GroupActivityPayload)

    def test_application_update_message(self):
        payload = ApplicationUpdatePayload(application_id='a1', status='APPROVED', admin_notes='Great fit')
        self.assertIn('approved', payload.message())
        self.assertIn('Great fit', payload.message())
        self.assertTrue(payload.send_email)


@patch('notifications_api.services.realtime.push_notification')
class CreateNotificationTest(TestCase):
    def setUp(self):
        self.user = make_user()

    def test_creates_and_pushes(self, mock_push):
        notification = services.create_notification(self.user, GeneralPayload('Hi', 'There', related='x1'))
        self.assertEqual(notification.type, NotificationType.GENERAL)
        self.assertEqual(notification.related_id, 'x1')
        mock_push.assert_called_once()
        self.assertEqual(mock_push.call_args[0][0], self.user.user_id)

    def test_duplicate_within_24h_returns_existing(self, mock_push):
        first = services.create_notification(self.user, GeneralPayload('Hi', 'There', related='x1'))
        second = services.create_notification(self.user, GeneralPayload('Hi again', 'There', related='x1'))
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Notification.objects.filter(user=self.user).count(), 1)

    def test_old_duplicate_is_not_suppressed(self, mock_push):
        first = services.create_notification(self.user, GeneralPayload('Hi', 'There', related='x1'))
        Notification.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(hours=25))
        second = services.create_notification(self.user, GeneralPayload('Hi', 'There', related='x1'))
        self.assertNotEqual(first.pk, second.pk)

    @patch('notifications_api.outbox.send_email')
    def test_email_variant_goes_through_outbox(self, mock_send, mock_push):
        mock_send.return_value = {self.user.email: SENT}
        services.create_notification(self.user, ApplicationUpdatePayload(application_id='a1', status='REJECTED'))
        entry = EmailOutbox.objects.get(user=self.user)
        self.assertEqual(entry.kind, EmailOutbox.Kind.NOTIFICATION)
        self.assertEqual(entry.status, EmailOutbox.Status.SENT)

    @patch('notifications_api.outbox.send_email', side_effect=RuntimeError('boom'))
    def test_email_failure_does_not_fail_creation(self, mock_send, mock_push):
        notification = services.create_notification(
            self.user, ApplicationUpdatePayload(application_id='a2', status='APPROVED')
        )
        self.assertIsNotNone(notification.pk)
        entry = EmailOutbox.objects.get(user=self.user)
        self.assertEqual(entry.status, EmailOutbox.Status.FAILED)
        self.assertEqual(entry.attempts, 1)

    def test_push_failure_is_swallowed(self, mock_push):
        mock_push.side_effect = RuntimeError('no layer')
        notification = services.create_notification(self.user, GeneralPayload('Hi', 'There'))
        self.assertIsNotNone(notification.pk)

    def test_bulk_skips_duplicates(self, mock_push):
        other = make_user('other@example.com')
        services.create_notification(self.user, GeneralPayload('Hi', 'There', related='g1'))
        created = services.create_bulk_notifications([self.user, other], [GeneralPayload('Hi', 'There', related='g1')])
        self.assertEqual(len(created), 1)
        self.assertEqual(created[0].user_id, other.user_id)

    def test_cleanup_only_removes_old_read(self, mock_push):
        old_read = services.create_notification(self.user, GeneralPayload('a', 'b', related='1'))
        old_unread = services.create_notification(self.user, GeneralPayload('a', 'b', related='2'))
        Notification.objects.filter(pk=old_read.pk).update(is_read=True, created_at=timezone.now() - timedelta(days=40))
        Notification.objects.filter(pk=old_unread.pk).update(created_at=timezone.now() - timedelta(days=40))
        self.assertEqual(services.cleanup_old_notifications(30), 1)
        self.assertTrue(Notification.objects.filter(pk=old_unread.pk).exists())


class OutboxTest(TestCase):
    def setUp(self):
        self.user = make_user()

    @patch('notifications_api.outbox.send_email')
    def test_dispatch_marks_sent(self, mock_send):
        mock_send.return_value = {self.user.email: SENT}
        entry = enqueue_email(self.user.email, EmailOutbox.Kind.WELCOME, 'Welcome', 'Hi', user=self.user)
        self.assertTrue(dispatch(entry))
        entry.refresh_from_db()
        self.assertEqual(entry.status, EmailOutbox.Status.SENT)
        self.assertIsNotNone(entry.sent_at)

    @patch('notifications_api.outbox.send_email')
    def test_dispatch_pending_retries_failed_rows(self, mock_send):
        mock_send.return_value = {self.user.email: NOT_SENT}
        entry = enqueue_email(self.user.email, EmailOutbox.Kind.WELCOME, 'Welcome', 'Hi', user=self.user)
        self.assertFalse(dispatch(entry))
        entry.refresh_from_db()
        self.assertEqual(entry.last_error, 'connection refused')

        mock_send.return_value = {self.user.email: SENT}
        counts = dispatch_pending()
        self.assertEqual(counts, {'sent': 1, 'failed': 0})
        entry.refresh_from_db()
        self.assertEqual(entry.status, EmailOutbox.Status.SENT)
        self.assertEqual(entry.attempts, 2)

    @patch('notifications_api.outbox.send_email')
    def test_dispatch_pending_respects_max_attempts(self, mock_send):
        entry = enqueue_email(self.user.email, EmailOutbox.Kind.WELCOME, 'Welcome', 'Hi', user=self.user)
        EmailOutbox.objects.filter(pk=entry.pk).update(status=EmailOutbox.Status.FAILED, attempts=5)
        self.assertEqual(dispatch_pending(), {'sent': 0, 'failed': 0})
        mock_send.assert_not_called()


@patch('notifications_api.services.realtime.push_notification')
class NotificationViewsTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = make_user()
        self.admin = make_user('admin@example.com', role=Custom_User.Role.ADMIN)
        self.client.force_authenticate(user=self.user)

    def test_list_paginated(self, mock_push):
        for i in range(3):
            services.create_notification(self.user, GeneralPayload(f't{i}', 'm', related=str(i)))
        response = self.client.get(reverse('notification-list'), {'limit': 2})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['notifications']), 2)
        self.assertEqual(response.data['pagination']['total'], 3)
        self.assertEqual(response.data['pagination']['pages'], 2)

    def test_unread_count_and_mark_read(self, mock_push):
        n = services.create_notification(self.user, GeneralPayload('t', 'm'))
        response = self.client.get(reverse('notification-unread-count'))
        self.assertEqual(response.data['unread_count'], 1)

        response = self.client.put(reverse('notification-read', args=[n.notification_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])

    def test_mark_all_read_and_stats(self, mock_push):
        services.create_notification(self.user, GeneralPayload('t', 'm', related='1'))
        services.create_notification(self.user, GeneralPayload('t', 'm', related='2'))
        response = self.client.put(reverse('notification-mark-all-read'))
        self.assertEqual(response.data['updated'], 2)
        stats = self.client.get(reverse('notification-stats')).data
        self.assertEqual(stats['total'], 2)
        self.assertEqual(stats['unread'], 0)
        self.assertEqual(stats['by_type'], {'GENERAL': 2})

    def test_cannot_delete_someone_elses_notification(self, mock_push):
        n = services.create_notification(self.admin, GeneralPayload('t', 'm'))
        response = self.client.delete(reverse('notification-detail', args=[n.notification_id]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Notification.objects.filter(pk=n.pk).exists())

    def test_create_requires_admin(self, mock_push):
        body = {'user_id': str(self.user.user_id), 'type': 'GENERAL',
                'payload': {'title_text': 'Hi', 'message_text': 'there'}}
        response = self.client.post(reverse('notification-list'), body, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(reverse('notification-list'), body, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['title'], 'Hi')

    def test_create_with_invalid_payload(self, mock_push):
        self.client.force_authenticate(user=self.admin)
        body = {'user_id': str(self.user.user_id), 'type': 'NEW_RESOURCE', 'payload': {}}
        response = self.client.post(reverse('notification-list'), body, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['status_code'], 400)
