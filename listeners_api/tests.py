"""
Tests for listeners_api: topic-overlap matching, recommendation confidence and
the listener application workflow.
"""
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from chat_api.models import Session
from listeners_api import services
from listeners_api.models import ListenerApplication
from notifications_api.models import Notification, NotificationType
from peerconnect_server.exceptions import BadRequestError, ConflictError, NotFoundError
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    extra.setdefault('email_verified', True)
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', **extra
    )


def make_listener(email, topics, sessions=0, **extra):
    extra.setdefault('status', 'ONLINE')
    listener = make_user(email, role='LISTENER', is_approved=True, **extra)
    listener.topics.set(topics)
    if sessions:
        seeker = make_user(f'seeker-of-{email}')
        for _ in range(sessions):
            Session.objects.create(seeker=seeker, listener=listener, topic=topics[0], start_time=timezone.now())
    return listener


class ConfidenceScoreTest(SimpleTestCase):
    def test_formula(self):
        self.assertEqual(services.confidence_score(0, 0), 0)
        self.assertAlmostEqual(services.confidence_score(2, 10), 0.5)
        self.assertAlmostEqual(services.confidence_score(3, 500), 0.8)
        self.assertEqual(services.confidence_score(5, 50), 1)

    def test_limit_is_clamped(self):
        self.assertEqual(services.clamp_limit(0), 1)
        self.assertEqual(services.clamp_limit(500), 50)
        self.assertEqual(services.clamp_limit('abc'), 10)
        self.assertEqual(services.clamp_limit('7'), 7)


class ListenerMatchingTest(TestCase):
    def setUp(self):
        self.topics = [Topic.objects.create(name=name) for name in ('Anxiety', 'Grief', 'Sleep', 'Work')]
        self.seeker = make_user('seeker@example.com')
        self.seeker.topics.set(self.topics[:3])

    def test_sorted_by_overlap_then_sessions(self):
        one_topic_busy = make_listener('busy@example.com', self.topics[:1], sessions=3)
        two_topics = make_listener('two@example.com', self.topics[:2])
        two_topics_busy = make_listener('twobusy@example.com', self.topics[1:3], sessions=1)
        make_listener('unrelated@example.com', self.topics[3:])

        matches = services.find_listeners_by_topic_overlap(self.seeker)

        self.assertEqual(
            [m['user_id'] for m in matches],
            [str(two_topics_busy.user_id), str(two_topics.user_id), str(one_topic_busy.user_id)],
        )
        self.assertEqual(matches[0]['matching_topics'], ['Grief', 'Sleep'])
        self.assertEqual((matches[0]['topic_overlap'], matches[0]['session_count']), (2, 1))

    def test_ties_are_stable(self):
        first = make_listener('first@example.com', self.topics[:1])
        second = make_listener('second@example.com', self.topics[:1])
        for _ in range(3):
            ids = [m['user_id'] for m in services.find_listeners_by_topic_overlap(self.seeker)]
            self.assertEqual(ids, [str(first.user_id), str(second.user_id)])

    def test_only_available_verified_approved_listeners(self):
        make_listener('offline@example.com', self.topics[:1], status='OFFLINE')
        make_listener('unverified@example.com', self.topics[:1], email_verified=False)
        unapproved = make_user('unapproved@example.com', role='LISTENER', is_approved=False, status='ONLINE')
        unapproved.topics.set(self.topics[:1])
        available = make_listener('available@example.com', self.topics[:1], status='AVAILABLE')
        matches = services.find_listeners_by_topic_overlap(self.seeker)
        self.assertEqual([m['user_id'] for m in matches], [str(available.user_id)])

    def test_limit_and_no_topics(self):
        for i in range(3):
            make_listener(f'l{i}@example.com', self.topics[:1])
        self.assertEqual(len(services.find_listeners_by_topic_overlap(self.seeker, limit=2)), 2)
        self.assertEqual(services.find_listeners_by_topic_overlap(make_user('empty@example.com')), [])

    def test_recommendations_carry_confidence_and_reason(self):
        make_listener('two@example.com', self.topics[:2], sessions=1)
        rec = services.recommendations(self.seeker)[0]
        self.assertAlmostEqual(rec['confidence'], 0.41)
        self.assertIn('Shares 2 topics with you: Anxiety, Grief', rec['reason'])

    def test_available_for_topic(self):
        quiet = make_listener('quiet@example.com', self.topics[:1])
        busy = make_listener('busy@example.com', self.topics[:1], sessions=2)
        result = services.available_for_topic(self.topics[0].topic_id)
        self.assertEqual([m['user_id'] for m in result], [str(busy.user_id), str(quiet.user_id)])
        self.assertEqual(result[0]['matching_topics'], ['Anxiety'])
        with self.assertRaises(NotFoundError):
            services.available_for_topic('00000000-0000-0000-0000-000000000000')


class ListenerApplicationTest(TestCase):
    def setUp(self):
        self.topics = [Topic.objects.create(name=name) for name in ('Anxiety', 'Grief', 'Sleep', 'Work')]
        self.user = make_user('applicant@example.com')
        self.admin = make_user('admin@example.com', role='ADMIN')

    def _data(self, topics=None, **overrides):
        data = {
            'bio': 'Volunteer', 'experience': 'Two years on a helpline', 'motivation': 'Give back',
            'topic_ids': [t.topic_id for t in (topics or self.topics[:3])],
        }
        data.update(overrides)
        return data

    def test_submit_once_with_three_to_five_topics(self):
        with self.assertRaises(BadRequestError):
            services.submit_application(self.user, self._data(self.topics[:2]))
        application = services.submit_application(self.user, self._data())
        self.assertEqual(application.status, ListenerApplication.Status.PENDING)
        self.assertEqual(application.topics.count(), 3)
        with self.assertRaises(ConflictError):
            services.submit_application(self.user, self._data())

    def test_update_and_withdraw_only_while_pending(self):
        services.submit_application(self.user, self._data())
        updated = services.update_application(self.user, {'bio': 'New bio', 'topic_ids': [t.topic_id for t in self.topics]})
        self.assertEqual(updated.bio, 'New bio')
        self.assertEqual(updated.topics.count(), 4)

        ListenerApplication.objects.filter(user=self.user).update(status='REJECTED')
        with self.assertRaises(BadRequestError):
            services.update_application(self.user, {'bio': 'again'})
        with self.assertRaises(BadRequestError):
            services.withdraw_application(self.user)

    def test_withdraw(self):
        services.submit_application(self.user, self._data())
        services.withdraw_application(self.user)
        with self.assertRaises(NotFoundError):
            services.get_my_application(self.user)

    @patch('notifications_api.services.realtime.push_notification')
    def test_approval_makes_an_approved_listener(self, mock_push):
        application = services.submit_application(self.user, self._data())
        services.review_application(self.admin, application.application_id, 'APPROVED', 'Welcome aboard')

        self.user.refresh_from_db()
        self.assertEqual((self.user.role, self.user.is_approved), ('LISTENER', True))
        self.assertEqual(self.user.topics.count(), 3)
        application.refresh_from_db()
        self.assertEqual(application.reviewed_by, self.admin)
        self.assertIsNotNone(application.reviewed_at)
        self.assertTrue(Notification.objects.filter(
            user=self.user, type=NotificationType.APPLICATION_UPDATE, related_id=str(application.application_id)
        ).exists())
        with self.assertRaises(BadRequestError):
            services.review_application(self.admin, application.application_id, 'REJECTED')

    @patch('notifications_api.services.realtime.push_notification')
    def test_rejection_keeps_role(self, mock_push):
        application = services.submit_application(self.user, self._data())
        services.review_application(self.admin, application.application_id, 'REJECTED')
        self.user.refresh_from_db()
        self.assertEqual((self.user.role, self.user.is_approved), ('USER', False))
        self.assertEqual(services.application_stats(), {'total': 1, 'pending': 0, 'approved': 0, 'rejected': 1})


class ListenerViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.topics = [Topic.objects.create(name=name) for name in ('Anxiety', 'Grief', 'Sleep')]
        self.user = make_user('user@example.com')
        self.client.force_authenticate(user=self.user)

    def test_application_endpoints(self):
        resp = self.client.post(reverse('listener-apply'), {
            'bio': 'b', 'experience': 'e', 'motivation': 'm',
            'topic_ids': [str(t.topic_id) for t in self.topics],
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(resp.data['topics']), 3)

        resp = self.client.get(reverse('listener-application-mine'))
        self.assertEqual(resp.data['status'], 'PENDING')

        resp = self.client.get(reverse('listener-application-list'))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(user=make_user('admin@example.com', role='ADMIN'))
        resp = self.client.get(reverse('listener-application-status', args=['pending']))
        self.assertEqual(len(resp.data), 1)
        resp = self.client.get(reverse('listener-application-status', args=['bogus']))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_matches_endpoint(self):
        self.user.topics.set(self.topics)
        make_listener('listener@example.com', self.topics[:2])
        resp = self.client.get(reverse('listener-matches'), {'limit': 100})
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data[0]['topic_overlap'], 2)
