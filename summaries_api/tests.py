"""
Tests for summaries_api: response parsing, the completion client, PDF rendering
and the summary endpoints.
"""
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import MagicMock, patch

from chat_api.models import Message, Session
from groups_api.models import Group, GroupMember
from peerconnect_server.exceptions import BadRequestError
from summaries_api import ai_client, services
from summaries_api.models import GroupSummary, SessionSummary
from summaries_api.parsing import (
    DEFAULT_EMOTIONAL_TONE,
    DEFAULT_GROUP_SENTIMENT,
    GroupSummaryData,
    SessionSummaryData,
    parse_group_summary,
    parse_session_summary,
)
from summaries_api.pdf import render_group_summary_pdf, render_session_summary_pdf
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


STRUCTURED_SESSION = """KEY POINTS:
- Work stress is rising
- Sleep has been poor

EMOTIONAL TONE:
Anxious but hopeful

ACTION ITEMS:
- Keep a sleep diary

SUGGESTED RESOURCES:
- Sleep hygiene guide
"""

STRUCTURED_GROUP = """TOPICS COVERED:
- Exam anxiety
GROUP SENTIMENT:
Supportive and engaged
RECOMMENDED RESOURCES:
- Breathing exercises
"""


class ParsingTest(TestCase):
    def test_structured_session_summary(self):
        data = parse_session_summary(STRUCTURED_SESSION)
        self.assertEqual(data.key_points, ['Work stress is rising', 'Sleep has been poor'])
        self.assertEqual(data.emotional_tone, 'Anxious but hopeful')
        self.assertEqual(data.action_items, ['Keep a sleep diary'])
        self.assertEqual(data.suggested_resources, ['Sleep hygiene guide'])

    def test_session_fallback_when_section_missing(self):
        text = "- one\n* two\n• three\nfour\nfive\nsix\nseven\neight"
        data = parse_session_summary(text)
        self.assertEqual(data.key_points, ['one', 'two', 'three'])
        self.assertEqual(data.emotional_tone, DEFAULT_EMOTIONAL_TONE)
        self.assertEqual(data.action_items, ['four', 'five'])
        self.assertEqual(data.suggested_resources, ['six', 'seven'])

    def test_structured_group_summary(self):
        data = parse_group_summary(STRUCTURED_GROUP)
        self.assertEqual(data.topics_covered, ['Exam anxiety'])
        self.assertEqual(data.group_sentiment, 'Supportive and engaged')
        self.assertEqual(data.recommended_resources, ['Breathing exercises'])

    def test_group_fallback(self):
        data = parse_group_summary("alpha\nbeta\ngamma\ndelta\nepsilon\nzeta")
        self.assertEqual(data.topics_covered, ['alpha', 'beta', 'gamma'])
        self.assertEqual(data.group_sentiment, DEFAULT_GROUP_SENTIMENT)
        self.assertEqual(data.recommended_resources, ['delta', 'epsilon'])


class AiClientTest(TestCase):
    @override_settings(OPENAI_API_KEY='')
    def test_missing_key_is_an_error(self):
        with self.assertRaises(ai_client.SummaryGenerationError) as ctx:
            ai_client.generate_session_summary(['hello'])
        self.assertIn('AI summarization failed', str(ctx.exception.detail))

    @override_settings(OPENAI_API_KEY='sk-test', OPENAI_MODEL='gpt-test')
    @patch('summaries_api.ai_client.OpenAI')
    def test_single_call_with_fixed_parameters(self, mock_openai):
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content=STRUCTURED_GROUP))]
        mock_openai.return_value.chat.completions.create.return_value = completion

        data = ai_client.generate_group_summary(['we talked about exams'])

        self.assertEqual(data.group_sentiment, 'Supportive and engaged')
        create = mock_openai.return_value.chat.completions.create
        create.assert_called_once()
        kwargs = create.call_args.kwargs
        self.assertEqual(kwargs['temperature'], 0.7)
        self.assertEqual(kwargs['max_tokens'], 1000)
        self.assertIn('we talked about exams', kwargs['messages'][1]['content'])

    @override_settings(OPENAI_API_KEY='sk-test')
    @patch('summaries_api.ai_client.OpenAI')
    def test_api_failure_is_wrapped(self, mock_openai):
        mock_openai.return_value.chat.completions.create.side_effect = RuntimeError('rate limited')
        with self.assertRaises(ai_client.SummaryGenerationError) as ctx:
            ai_client.generate_session_summary(['hi'])
        self.assertIn('rate limited', str(ctx.exception.detail))
        self.assertEqual(mock_openai.return_value.chat.completions.create.call_count, 1)


class SummaryFixtureMixin:
    def setUp(self):
        self.topic = Topic.objects.create(name='Anxiety')
        self.seeker = make_user('seeker@example.com')
        self.listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        self.outsider = make_user('outsider@example.com')
        self.session = Session.objects.create(
            seeker=self.seeker, listener=self.listener, topic=self.topic, start_time=timezone.now()
        )
        self.group = Group.objects.create(name='Calm', topic=self.topic, leader=self.listener)
        GroupMember.objects.create(group=self.group, user=self.listener, role='ADMIN')


class PdfTest(SummaryFixtureMixin, TestCase):
    def test_session_pdf_renders(self):
        summary = SessionSummary.objects.create(
            session=self.session, key_points=['a'], emotional_tone='calm', action_items=[], suggested_resources=['b'],
        )
        data = render_session_summary_pdf(summary)
        self.assertTrue(data.startswith(b'%PDF'))

    def test_group_pdf_renders_long_text(self):
        summary = GroupSummary.objects.create(
            group=self.group, topics_covered=['word ' * 400], group_sentiment='ok', recommended_resources=[],
        )
        data = render_group_summary_pdf(summary)
        self.assertTrue(data.startswith(b'%PDF'))


@patch('summaries_api.services.storage.upload_bytes', return_value={'url': 'https://cdn.example.com/s.pdf'})
class SummaryServiceTest(SummaryFixtureMixin, TestCase):
    @patch('summaries_api.services.ai_client.generate_session_summary')
    def test_session_summary_is_stored_and_uploaded(self, mock_generate, mock_upload):
        mock_generate.return_value = SessionSummaryData(['k'], 'tone', ['a'], ['r'])
        summary, url = services.generate_and_store_session_summary(self.session, ['hi'])
        self.assertEqual(url, 'https://cdn.example.com/s.pdf')
        self.assertEqual(summary.pdf_url, url)
        self.assertEqual(summary.key_points, ['k'])
        kwargs = mock_upload.call_args.kwargs
        self.assertEqual(kwargs['folder'], 'session-summaries')
        self.assertEqual(kwargs['public_id'], f'session-summary-{self.session.session_id}')

    @patch('summaries_api.services.ai_client.generate_group_summary')
    def test_group_summary_upserts(self, mock_generate, mock_upload):
        mock_generate.return_value = GroupSummaryData(['t1'], 'good', ['r'])
        services.generate_and_store_group_summary(self.group, ['hello'])
        mock_generate.return_value = GroupSummaryData(['t2'], 'better', ['r'])
        services.generate_and_store_group_summary(self.group, ['hello again'])
        self.assertEqual(GroupSummary.objects.filter(group=self.group).count(), 1)
        self.assertEqual(GroupSummary.objects.get(group=self.group).topics_covered, ['t2'])

    def test_regenerate_without_messages_is_400(self, mock_upload):
        with self.assertRaises(BadRequestError):
            services.regenerate_session_summary(self.session.session_id, self.seeker)


class SummaryViewTest(SummaryFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()
        self.client.force_authenticate(user=self.seeker)

    def test_preview_404_without_summary(self):
        url = reverse('session-summary-preview', args=[self.session.session_id])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_info_without_summary(self):
        url = reverse('session-summary-info', args=[self.session.session_id])
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.data['has_summary'])

    def test_outsider_is_forbidden(self):
        self.client.force_authenticate(user=self.outsider)
        url = reverse('session-summary-info', args=[self.session.session_id])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_403_FORBIDDEN)

    def test_pdf_download(self):
        SessionSummary.objects.create(
            session=self.session, key_points=['a'], emotional_tone='calm', action_items=['b'],
            suggested_resources=['c'], pdf_url='https://cdn.example.com/x.pdf',
        )
        url = reverse('session-summary-pdf', args=[self.session.session_id])
        resp = self.client.get(url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp['Content-Type'], 'application/pdf')
        self.assertTrue(resp.content.startswith(b'%PDF'))

    def test_pdf_404_before_upload(self):
        SessionSummary.objects.create(
            session=self.session, key_points=['a'], emotional_tone='calm', action_items=[], suggested_resources=[],
        )
        url = reverse('session-summary-pdf', args=[self.session.session_id])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_generate_without_messages_is_400(self):
        url = reverse('session-summary-generate', args=[self.session.session_id])
        self.assertEqual(self.client.post(url).status_code, status.HTTP_400_BAD_REQUEST)

    @patch('summaries_api.services.storage.upload_bytes', return_value={'url': 'https://cdn.example.com/g.pdf'})
    @patch('summaries_api.services.ai_client.generate_group_summary')
    def test_group_generate(self, mock_generate, mock_upload):
        mock_generate.return_value = GroupSummaryData(['t'], 'good', ['r'])
        Message.objects.create(sender=self.listener, group=self.group, content='welcome')
        self.client.force_authenticate(user=self.listener)
        url = reverse('group-summary-generate', args=[self.group.group_id])
        resp = self.client.post(url)
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['pdf_url'], 'https://cdn.example.com/g.pdf')
        mock_generate.assert_called_once_with(['welcome'])
