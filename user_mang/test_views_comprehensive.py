"""
Comprehensive tests for user_mang views
Testing the authenticated profile endpoint and the custom user manager
"""
import pytest
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


@pytest.fixture
def sample_user(db):
    return Custom_User.objects.create_user(
        email='test@example.com', password='longenough', first_name='Test', last_name='User', email_verified=True
    )


@pytest.mark.django_db
def test_create_user_normalizes_email_and_hashes_password():
    user = Custom_User.objects.create_user(email='Mixed@Example.COM', password='longenough', first_name='A', last_name='B')
    assert user.email == 'mixed@example.com'
    assert user.password != 'longenough'
    assert user.check_password('longenough')
    assert user.role == Custom_User.Role.USER
    assert user.status == Custom_User.Status.OFFLINE


@pytest.mark.django_db
def test_create_superuser_is_verified_admin():
    admin = Custom_User.objects.create_superuser(email='root@example.com', password='longenough', first_name='R', last_name='T')
    assert admin.role == Custom_User.Role.ADMIN
    assert admin.email_verified
    assert admin.is_staff and admin.is_superuser


def test_full_name(sample_user):
    assert sample_user.full_name == 'Test User'


class UserProfileViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse('user-profile')
        self.user = Custom_User.objects.create_user(
            email='test@example.com', password='longenough', first_name='Test', last_name='User', email_verified=True
        )
        self.topic = Topic.objects.create(name='Anxiety')
        self.user.topics.add(self.topic)

    def test_get_profile(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'test@example.com')
        self.assertEqual(response.data['topics'][0]['name'], 'Anxiety')
        self.assertNotIn('password', response.data)

    def test_get_profile_unauthenticated(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_patch_profile(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.patch(self.url, {'bio': 'Hello there', 'status': 'AVAILABLE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.bio, 'Hello there')
        self.assertEqual(self.user.status, Custom_User.Status.AVAILABLE)

    def test_patch_cannot_escalate_role(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.patch(self.url, {'role': 'ADMIN', 'is_approved': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, Custom_User.Role.USER)
        self.assertFalse(self.user.is_approved)

    def test_patch_invalid_status(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.patch(self.url, {'status': 'SLEEPING'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
