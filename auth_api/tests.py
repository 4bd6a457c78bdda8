"""
Tests for auth_api: two-phase registration, verification, login, refresh and password reset.
"""
from datetime import timedelta
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from unittest.mock import patch

from notifications_api.models import EmailOutbox
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User

SENT = {'sent': True, 'attempts': 1, 'reason': None, 'error': None}
NOT_SENT = {'sent': False, 'attempts': 2, 'reason': 'SMTP failed', 'error': 'connection refused'}


def mail_ok(subject, message, recipient_list, **kwargs):
    return {email: SENT for email in recipient_list}


def mail_down(subject, message, recipient_list, **kwargs):
    return {email: NOT_SENT for email in recipient_list}


@patch('notifications_api.outbox.send_email', side_effect=mail_ok)
class RegisterViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse('register')
        self.body = {'email': 'Sara@Example.com', 'password': 'longenough', 'first_name': 'Sara', 'last_name': 'Ali'}

    def test_register_success(self, mock_send):
        response = self.client.post(self.url, self.body, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = Custom_User.objects.get(email='sara@example.com')
        self.assertFalse(user.email_verified)
        self.assertRegex(user.verification_code, r'^\d{6}$')
        self.assertGreater(user.verification_code_expires, timezone.now() + timedelta(minutes=9))
        self.assertTrue(user.check_password('longenough'))
        entry = EmailOutbox.objects.get(user=user)
        self.assertEqual(entry.kind, EmailOutbox.Kind.VERIFICATION)
        self.assertEqual(entry.status, EmailOutbox.Status.SENT)
        self.assertIn(user.verification_code, entry.body_text)

    def test_register_duplicate_email(self, mock_send):
        self.client.post(self.url, self.body, format='json')
        response = self.client.post(self.url, self.body, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_register_short_password(self, mock_send):
        response = self.client.post(self.url, {**self.body, 'password': 'short'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['errors'])

    def test_register_admin_role_rejected(self, mock_send):
        response = self.client.post(self.url, {**self.body, 'role': 'ADMIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_failed_verification_email_leaves_no_user(self, mock_send):
        mock_send.side_effect = mail_down
        response = self.client.post(self.url, self.body, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(Custom_User.objects.filter(email='sara@example.com').exists())
        self.assertFalse(EmailOutbox.objects.exists())

    def test_emailer_exception_leaves_no_user(self, mock_send):
        mock_send.side_effect = RuntimeError('provider exploded')
        response = self.client.post(self.url, self.body, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertFalse(Custom_User.objects.filter(email='sara@example.com').exists())


@patch('notifications_api.outbox.send_email', side_effect=mail_ok)
class RegisterWithTopicsTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.topics = [Topic.objects.create(name=f'Topic {i}') for i in range(6)]
        self.body = {'email': 'omar@example.com', 'password': 'longenough', 'first_name': 'Omar', 'last_name': 'K'}

    def test_register_with_topics(self, mock_send):
        ids = [str(t.topic_id) for t in self.topics[:3]]
        response = self.client.post(reverse('register-with-topics'), {**self.body, 'topic_ids': ids}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = Custom_User.objects.get(email='omar@example.com')
        self.assertTrue(user.profile_completed)
        self.assertEqual(user.topics.count(), 3)

    def test_register_with_too_many_topics(self, mock_send):
        ids = [str(t.topic_id) for t in self.topics]
        response = self.client.post(reverse('register-with-topics'), {**self.body, 'topic_ids': ids}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Custom_User.objects.filter(email='omar@example.com').exists())


@patch('notifications_api.outbox.send_email', side_effect=mail_ok)
class VerifyAndLoginTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = Custom_User.objects.create_user(
            email='lina@example.com', password='longenough', first_name='Lina', last_name='M',
            verification_code='123456', verification_code_expires=timezone.now() + timedelta(minutes=10),
        )

    def test_login_unverified_is_401(self, mock_send):
        response = self.client.post(reverse('login'), {'email': 'lina@example.com', 'password': 'longenough'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_verify_then_login(self, mock_send):
        response = self.client.get(reverse('verify-email'), {'email': 'lina@example.com', 'code': '123456'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['user']['email_verified'])
        self.assertTrue(EmailOutbox.objects.filter(user=self.user, kind=EmailOutbox.Kind.WELCOME).exists())

        response = self.client.post(reverse('login'), {'email': 'lina@example.com', 'password': 'longenough'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access_token', response.data)
        self.assertIn('refresh_token', response.data)
        self.assertEqual(response.data['expires_in'], 900)
        self.assertEqual(response.data['status'], 'ONLINE')

    def test_verify_welcome_failure_still_verifies(self, mock_send):
        mock_send.side_effect = mail_down
        response = self.client.get(reverse('verify-email'), {'email': 'lina@example.com', 'code': '123456'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.email_verified)

    def test_verify_wrong_code(self, mock_send):
        response = self.client.get(reverse('verify-email'), {'email': 'lina@example.com', 'code': '654321'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_verify_expired_code(self, mock_send):
        Custom_User.objects.filter(pk=self.user.pk).update(verification_code_expires=timezone.now() - timedelta(seconds=1))
        response = self.client.get(reverse('verify-email'), {'email': 'lina@example.com', 'code': '123456'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_wrong_password(self, mock_send):
        Custom_User.objects.filter(pk=self.user.pk).update(email_verified=True)
        response = self.client.post(reverse('login'), {'email': 'lina@example.com', 'password': 'wrongpass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['detail'], 'Invalid credentials')

    def test_resend_verification(self, mock_send):
        response = self.client.post(reverse('resend-verification'), {'email': 'lina@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertNotEqual(self.user.verification_code, None)

    def test_resend_unknown_and_verified(self, mock_send):
        response = self.client.post(reverse('resend-verification'), {'email': 'nobody@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        Custom_User.objects.filter(pk=self.user.pk).update(email_verified=True)
        response = self.client.post(reverse('resend-verification'), {'email': 'lina@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


@patch('notifications_api.outbox.send_email', side_effect=mail_ok)
class TokenAndPasswordTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = Custom_User.objects.create_user(
            email='nour@example.com', password='longenough', first_name='Nour', last_name='S', email_verified=True,
        )

    def test_refresh_returns_new_tokens(self, mock_send):
        refresh = str(RefreshToken.for_user(self.user))
        response = self.client.post(reverse('token-refresh'), {'refresh_token': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access_token', response.data)

    def test_refresh_unverified_user(self, mock_send):
        refresh = str(RefreshToken.for_user(self.user))
        Custom_User.objects.filter(pk=self.user.pk).update(email_verified=False)
        response = self.client.post(reverse('token-refresh'), {'refresh_token': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_garbage_token(self, mock_send):
        response = self.client.post(reverse('token-refresh'), {'refresh_token': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token_does_not_authenticate_requests(self, mock_send):
        refresh = RefreshToken.for_user(self.user)
        url = reverse('user-profile')

        response = self.client.get(url, HTTP_X_REFRESH_TOKEN=str(refresh))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertNotIn('X-New-Access-Token', response)

        response = self.client.get(url, HTTP_AUTHORIZATION=f'Bearer {refresh}')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

        response = self.client.get(url, HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_logout_sets_offline(self, mock_send):
        self.user.status = Custom_User.Status.ONLINE
        self.user.save()
        self.client.force_authenticate(user=self.user)
        response = self.client.post(reverse('logout'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.status, Custom_User.Status.OFFLINE)

    def test_forgot_and_reset_password(self, mock_send):
        response = self.client.post(reverse('forgot-password'), {'email': 'nour@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        token = self.user.reset_token
        self.assertTrue(token)

        response = self.client.post(reverse('reset-password'), {'token': token, 'new_password': 'brandnewpass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('brandnewpass'))
        self.assertIsNone(self.user.reset_token)

    def test_forgot_password_unknown_email_is_neutral(self, mock_send):
        response = self.client.post(reverse('forgot-password'), {'email': 'ghost@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_send.assert_not_called()

    def test_reset_password_expired_token(self, mock_send):
        Custom_User.objects.filter(pk=self.user.pk).update(
            reset_token='abc', reset_token_expires=timezone.now() - timedelta(minutes=1)
        )
        response = self.client.post(reverse('reset-password'), {'token': 'abc', 'new_password': 'brandnewpass'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class CompleteProfileTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = Custom_User.objects.create_user(
            email='rami@example.com', password='longenough', first_name='Rami', last_name='T', email_verified=True,
        )
        self.topics = [Topic.objects.create(name=f'Topic {i}') for i in range(4)]
        self.client.force_authenticate(user=self.user)

    def test_complete_profile(self):
        ids = [str(t.topic_id) for t in self.topics]
        response = self.client.post(reverse('complete-profile'), {'topic_ids': ids, 'bio': 'hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['profile_completed'])
        response = self.client.get(reverse('profile-completion'))
        self.assertTrue(response.data['profile_completed'])
        self.assertTrue(response.data['has_topics'])

    def test_complete_profile_twice(self):
        ids = [str(t.topic_id) for t in self.topics[:3]]
        self.client.post(reverse('complete-profile'), {'topic_ids': ids}, format='json')
        response = self.client.post(reverse('complete-profile'), {'topic_ids': ids}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_complete_profile_too_few_topics(self):
        ids = [str(t.topic_id) for t in self.topics[:2]]
        response = self.client.post(reverse('complete-profile'), {'topic_ids': ids}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
