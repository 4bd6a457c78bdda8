"""
Tests for resources_api: upload permissions, the review flow and download tracking.
"""
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from notifications_api.models import Notification, NotificationType
from peerconnect_server.exceptions import ForbiddenError, NotFoundError
from resources_api import services
from resources_api.models import Resource
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


def resource_data(topic, **overrides):
    data = {
        'title': 'Breathing Basics',
        'description': 'Box breathing walkthrough',
        'type': 'PDF',
        'file_url': 'https://cdn.example.com/breathing.pdf',
        'topic_id': topic.topic_id,
    }
    data.update(overrides)
    return data


class ResourceServiceTest(TestCase):
    def setUp(self):
        self.topic = Topic.objects.create(name='Anxiety')
        self.listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        self.admin = make_user('admin@example.com', role='ADMIN')
        self.user = make_user('user@example.com')

    def test_who_can_upload(self):
        with self.assertRaises(ForbiddenError):
            services.create_resource(self.user, resource_data(self.topic))
        pending = make_user('pending@example.com', role='LISTENER', is_approved=False)
        with self.assertRaises(ForbiddenError):
            services.create_resource(pending, resource_data(self.topic))
        with self.assertRaises(NotFoundError):
            services.create_resource(self.listener, resource_data(self.topic, topic_id='00000000-0000-0000-0000-000000000000'))

    def test_admin_uploads_are_auto_approved(self):
        self.assertFalse(services.create_resource(self.listener, resource_data(self.topic)).is_approved)
        self.assertTrue(services.create_resource(self.admin, resource_data(self.topic)).is_approved)

    def test_unapproved_hidden_from_regular_users(self):
        resource = services.create_resource(self.listener, resource_data(self.topic))
        with self.assertRaises(NotFoundError):
            services.get_resource(resource.resource_id, self.user)
        self.assertEqual(services.get_resource(resource.resource_id, self.listener), resource)
        self.assertEqual(list(services.list_resources()), [])
        self.assertEqual(list(services.pending_resources()), [resource])

    @patch('resources_api.services.realtime')
    @patch('notifications_api.services.realtime.push_notification')
    def test_approval_notifies_topic_followers(self, mock_push, mock_realtime):
        self.user.topics.add(self.topic)
        self.listener.topics.add(self.topic)
        resource = services.create_resource(self.listener, resource_data(self.topic))

        services.set_approval(self.admin, resource.resource_id, True)

        resource.refresh_from_db()
        self.assertTrue(resource.is_approved)
        self.assertTrue(Notification.objects.filter(
            user=self.user, type=NotificationType.NEW_RESOURCE, related_id=str(resource.resource_id)
        ).exists())
        self.assertFalse(Notification.objects.filter(user=self.listener, type=NotificationType.NEW_RESOURCE).exists())
        mock_realtime.notify_new_resource.assert_called_once_with(resource)

    @patch('resources_api.services.realtime')
    def test_rejection_sends_nothing(self, mock_realtime):
        resource = services.create_resource(self.listener, resource_data(self.topic))
        services.set_approval(self.admin, resource.resource_id, False)
        mock_realtime.notify_new_resource.assert_not_called()

    def test_only_uploader_or_admin_modifies(self):
        resource = services.create_resource(self.listener, resource_data(self.topic))
        other = make_user('other@example.com', role='LISTENER', is_approved=True)
        with self.assertRaises(ForbiddenError):
            services.update_resource(other, resource.resource_id, {'title': 'Mine now'})
        with self.assertRaises(ForbiddenError):
            services.update_resource(self.listener, resource.resource_id, {'is_approved': True})
        updated = services.update_resource(self.listener, resource.resource_id, {'title': 'Breathing 101'})
        self.assertEqual(updated.title, 'Breathing 101')
        with self.assertRaises(ForbiddenError):
            services.delete_resource(other, resource.resource_id)
        services.delete_resource(self.admin, resource.resource_id)
        self.assertFalse(Resource.objects.filter(pk=resource.pk).exists())

    def test_download_counts_and_names_file(self):
        resource = services.create_resource(self.admin, resource_data(self.topic, title='Calm: A Guide!'))
        info = services.download_resource(resource.resource_id, self.user)
        self.assertEqual(info, {
            'download_url': 'https://cdn.example.com/breathing.pdf',
            'file_name': 'Calm-A-Guide.pdf',
            'content_type': 'application/pdf',
        })
        services.download_resource(resource.resource_id, self.user)
        resource.refresh_from_db()
        self.assertEqual(resource.download_count, 2)

    def test_download_and_stream_need_approval(self):
        resource = services.create_resource(self.listener, resource_data(self.topic, type='VIDEO'))
        with self.assertRaises(ForbiddenError):
            services.download_resource(resource.resource_id, self.user)
        with self.assertRaises(ForbiddenError):
            services.stream_resource(resource.resource_id, self.user)
        Resource.objects.filter(pk=resource.pk).update(is_approved=True)
        self.assertEqual(services.stream_resource(resource.resource_id, self.user)['content_type'], 'video/mp4')

    def test_search_orders_by_downloads(self):
        quiet = services.create_resource(self.admin, resource_data(self.topic, title='Sleep hygiene'))
        popular = services.create_resource(self.admin, resource_data(self.topic, title='Better sleep'))
        Resource.objects.filter(pk=popular.pk).update(download_count=10)
        services.create_resource(self.admin, resource_data(self.topic, title='Budgeting', description='money'))
        results = list(services.search_resources('SLEEP'))
        self.assertEqual(results, [popular, quiet])
        other_topic = Topic.objects.create(name='Sleep')
        self.assertEqual(list(services.search_resources('sleep', other_topic.topic_id)), [])


class ResourceViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.topic = Topic.objects.create(name='Stress')
        self.listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        self.admin = make_user('admin@example.com', role='ADMIN')

    @patch('resources_api.services.realtime')
    def test_upload_review_download(self, mock_realtime):
        self.client.force_authenticate(user=self.listener)
        resp = self.client.post(reverse('resource-list'), {
            'title': 'Journaling prompts', 'type': 'ARTICLE',
            'file_url': 'https://cdn.example.com/journal.html', 'topic_id': str(self.topic.topic_id),
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        resource_id = resp.data['resource_id']
        self.assertFalse(resp.data['is_approved'])

        resp = self.client.post(reverse('resource-approve', args=[resource_id]), {'is_approved': True}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=self.admin)
        resp = self.client.get(reverse('resource-pending'))
        self.assertEqual(len(resp.data), 1)
        resp = self.client.post(reverse('resource-approve', args=[resource_id]), {'is_approved': True}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['is_approved'])

        seeker = make_user('seeker@example.com')
        self.client.force_authenticate(user=seeker)
        resp = self.client.get(reverse('resource-download', args=[resource_id]))
        self.assertEqual(resp.data['content_type'], 'text/html')
        resp = self.client.get(reverse('resource-topic', args=[self.topic.topic_id]))
        self.assertEqual(resp.data[0]['download_count'], 1)

    def test_regular_user_cannot_upload(self):
        self.client.force_authenticate(user=make_user('seeker@example.com'))
        resp = self.client.post(reverse('resource-list'), {
            'title': 'x', 'type': 'PDF', 'file_url': 'https://cdn.example.com/x.pdf', 'topic_id': str(self.topic.topic_id),
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_search_endpoint(self):
        Resource.objects.create(
            title='Mindful walking', type='VIDEO', file_url='https://cdn.example.com/walk.mp4',
            topic=self.topic, uploaded_by=self.admin, is_approved=True,
        )
        self.client.force_authenticate(user=self.listener)
        resp = self.client.get(reverse('resource-search'), {'q': 'mindful'})
        self.assertEqual([r['title'] for r in resp.data], ['Mindful walking'])
