"""
Tests for media_api and the Cloudinary storage helpers behind it. Network calls
are patched; URL and signature building run for real against a fake account.
"""
import base64

import cloudinary.api
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from user_mang.models.custom_user import Custom_User

FAKE_CLOUDINARY = {'CLOUD_NAME': 'demo', 'API_KEY': '1234', 'API_SECRET': 'shh'}
UPLOAD_RESPONSE = {
    'secure_url': 'https://res.cloudinary.com/demo/image/upload/v1/peerconnect/avatar.png',
    'public_id': 'peerconnect/avatar',
    'resource_type': 'image',
    'bytes': 3,
    'format': 'png',
    'etag': 'ignored',
}


def make_user(email, **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


def png(name='avatar.png', size=3):
    return SimpleUploadedFile(name, b'\x89' * size, content_type='image/png')


@override_settings(CLOUDINARY_STORAGE=FAKE_CLOUDINARY, CLOUDINARY_ROOT_FOLDER='peerconnect')
class MediaUploadTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=make_user('user@example.com'))

    @patch('peerconnect_server.utils.storage.cloudinary.uploader.upload', return_value=UPLOAD_RESPONSE)
    def test_single_upload(self, mock_upload):
        resp = self.client.post(reverse('media-upload-single'), {'file': png(), 'folder': 'avatars'}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['url'], UPLOAD_RESPONSE['secure_url'])
        self.assertNotIn('etag', resp.data)
        self.assertEqual(mock_upload.call_args.kwargs['folder'], 'peerconnect/avatars')

    @patch('peerconnect_server.utils.storage.cloudinary.uploader.upload')
    def test_rejects_non_image(self, mock_upload):
        resp = self.client.post(reverse('media-upload-single'), {'file': png('tool.exe')}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        mock_upload.assert_not_called()

    @override_settings(MEDIA_MAX_UPLOAD_BYTES=2)
    @patch('peerconnect_server.utils.storage.cloudinary.uploader.upload')
    def test_rejects_large_file(self, mock_upload):
        resp = self.client.post(reverse('media-upload-single'), {'file': png(size=3)}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        mock_upload.assert_not_called()

    @patch('peerconnect_server.utils.storage.cloudinary.uploader.upload', return_value=UPLOAD_RESPONSE)
    def test_multiple_upload(self, mock_upload):
        resp = self.client.post(
            reverse('media-upload-multiple'), {'files': [png('a.png'), png('b.jpg')]}, format='multipart'
        )
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(resp.data), 2)
        self.assertEqual(mock_upload.call_count, 2)

    @patch('peerconnect_server.utils.storage.cloudinary.uploader.upload', return_value=UPLOAD_RESPONSE)
    def test_base64_upload(self, mock_upload):
        encoded = 'data:image/png;base64,' + base64.b64encode(b'png-bytes').decode()
        resp = self.client.post(reverse('media-upload-base64'), {'base64_string': encoded}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(mock_upload.call_args.args[0].read(), b'png-bytes')

        resp = self.client.post(reverse('media-upload-base64'), {'base64_string': 'not base64!'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('peerconnect_server.utils.storage.cloudinary.uploader.upload', side_effect=RuntimeError('network down'))
    def test_provider_failure_is_a_storage_error(self, mock_upload):
        resp = self.client.post(reverse('media-upload-single'), {'file': png()}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(resp.data['error'], 'storage_error')

    @override_settings(CLOUDINARY_STORAGE={'CLOUD_NAME': ''})
    def test_unconfigured_storage(self):
        resp = self.client.post(reverse('media-upload-single'), {'file': png()}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)
        resp = self.client.post(reverse('media-upload-single'), {'file': png()}, format='multipart')
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)


@override_settings(CLOUDINARY_STORAGE=FAKE_CLOUDINARY, CLOUDINARY_ROOT_FOLDER='peerconnect')
class MediaManagementTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=make_user('user@example.com'))

    @patch('peerconnect_server.utils.storage.cloudinary.uploader.destroy', return_value={'result': 'ok'})
    def test_delete_nested_public_id(self, mock_destroy):
        resp = self.client.delete(reverse('media-delete', args=['peerconnect/avatars/me']), {'resource_type': 'raw'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.data['deleted'])
        mock_destroy.assert_called_once_with('peerconnect/avatars/me', resource_type='raw')

    @patch('peerconnect_server.utils.storage.cloudinary.api.resource', side_effect=cloudinary.api.NotFound('missing'))
    def test_info_not_found(self, mock_resource):
        resp = self.client.get(reverse('media-info', args=['peerconnect/none']))
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_signature(self):
        resp = self.client.post(reverse('media-signature'), {'folder': 'docs'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['folder'], 'peerconnect/docs')
        self.assertEqual((resp.data['api_key'], resp.data['cloud_name']), ('1234', 'demo'))
        self.assertTrue(resp.data['signature'])
        self.assertIn('timestamp', resp.data)

    def test_transformation_url(self):
        resp = self.client.post(
            reverse('media-transform', args=['peerconnect/avatar']),
            {'transformation': {'width': 100, 'height': 100, 'crop': 'fill'}},
            format='json',
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertIn('res.cloudinary.com/demo', resp.data['url'])
        self.assertIn('w_100', resp.data['url'])
        self.assertTrue(resp.data['url'].endswith('peerconnect/avatar'))
