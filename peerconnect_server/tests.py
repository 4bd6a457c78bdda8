"""
Tests for the shared utilities: email templates and page slicing.
"""
from django.test import SimpleTestCase, TestCase

from peerconnect_server.utils.emailer import render_notification_email, render_welcome_email
from peerconnect_server.utils.pagination import paginate, parse_page_params
from topics_api.models import Topic


class EmailTemplateTest(SimpleTestCase):
    def test_html_escapes_user_values(self):
        subject, text, html = render_notification_email(
            '<b>Mallory</b>', 'Group Activity Update', 'New post: <script>alert(1)</script>'
        )
        self.assertEqual(subject, 'Group Activity Update')
        self.assertNotIn('<script>', html)
        self.assertNotIn('<b>Mallory</b>', html)
        self.assertIn('&lt;script&gt;alert(1)&lt;/script&gt;', html)
        self.assertIn('<script>alert(1)</script>', text)

    def test_welcome_escapes_name(self):
        _, _, html = render_welcome_email('Tom & "Jerry"')
        self.assertIn('Tom &amp; &quot;Jerry&quot;', html)


class PaginationTest(TestCase):
    def setUp(self):
        for i in range(5):
            Topic.objects.create(name=f'Topic {i}')
        self.qs = Topic.objects.order_by('name')

    def test_pages(self):
        items, pagination = paginate(self.qs, 2, 2)
        self.assertEqual([t.name for t in items], ['Topic 2', 'Topic 3'])
        self.assertEqual(pagination, {'page': 2, 'limit': 2, 'total': 5, 'pages': 3})

    def test_page_past_the_end_is_the_last_page(self):
        items, pagination = paginate(self.qs, 9, 2)
        self.assertEqual([t.name for t in items], ['Topic 4'])
        self.assertEqual(pagination['page'], 3)

    def test_empty_queryset(self):
        items, pagination = paginate(Topic.objects.none(), 1, 20)
        self.assertEqual(items, [])
        self.assertEqual(pagination, {'page': 1, 'limit': 20, 'total': 0, 'pages': 0})

    def test_parse_page_params(self):
        self.assertEqual(parse_page_params({'page': '3', 'limit': '500'}), (3, 100))
        self.assertEqual(parse_page_params({'page': 'x', 'limit': '0'}), (1, 1))
