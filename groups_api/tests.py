"""
Tests for groups_api: the keyword content filter, membership rules, moderated
group messaging and listener escalations.
"""
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient
from unittest.mock import patch

from chat_api.models import Message
from groups_api import services
from groups_api.content_filter import filter_content, match_keywords
from groups_api.models import Group, GroupMember, ListenerResponse
from notifications_api.models import Notification, NotificationType
from peerconnect_server.exceptions import ForbiddenError, NotFoundError
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


class ContentFilterTest(SimpleTestCase):
    def test_clean_message(self):
        result = filter_content('Hello everyone, I had a good day')
        self.assertEqual((result.severity, result.suggested_action), ('LOW', 'NONE'))
        self.assertEqual(result.flagged_terms, [])
        self.assertEqual(result.confidence, 0.95)

    def test_single_term_warns(self):
        result = filter_content('That guy is so annoying')
        self.assertEqual((result.severity, result.suggested_action), ('LOW', 'WARN'))
        self.assertEqual(result.confidence, 0.8)

    def test_two_terms_mute(self):
        result = filter_content('I hate this, total idiot')
        self.assertEqual((result.severity, result.suggested_action), ('MEDIUM', 'MUTE'))

    def test_three_terms_need_listener(self):
        result = filter_content('violence and attack and a weapon')
        self.assertEqual((result.severity, result.suggested_action), ('HIGH', 'LISTENER_RESPONSE'))

    def test_scam_terms_ban_first(self):
        result = filter_content('Join my SCAM now')
        self.assertEqual((result.severity, result.suggested_action), ('HIGH', 'BAN'))
        result = filter_content('kill attack weapon fraud')
        self.assertEqual(result.suggested_action, 'BAN')

    def test_scam_offer_is_banned(self):
        result = filter_content('this is a total scam, send money now')
        self.assertEqual((result.severity, result.suggested_action), ('HIGH', 'BAN'))
        self.assertEqual(result.flagged_terms, ['scam'])

    def test_two_harassment_terms_mute(self):
        result = filter_content("I hate this and it's so annoying")
        self.assertEqual((result.severity, result.suggested_action), ('MEDIUM', 'MUTE'))
        self.assertEqual(result.flagged_terms, ['hate', 'annoying'])

    def test_matches_start_at_word_boundary(self):
        self.assertEqual(match_keywords('whatever'), [])
        self.assertEqual(match_keywords('I hated it'), ['hate'])
        self.assertEqual(match_keywords('Self-Harm'), ['self-harm'])

    def test_deterministic(self):
        self.assertEqual(filter_content('spam spam'), filter_content('spam spam'))

    def test_fails_open(self):
        with patch('groups_api.content_filter.match_keywords', side_effect=RuntimeError('boom')):
            result = filter_content('anything')
        self.assertEqual((result.severity, result.suggested_action, result.confidence), ('LOW', 'NONE', 0.5))


@patch('groups_api.services.realtime')
class GroupServiceTest(TestCase):
    def setUp(self):
        self.topic = Topic.objects.create(name='Loneliness')
        self.leader = make_user('leader@example.com', role='LISTENER', is_approved=True)
        self.user = make_user('user@example.com')
        self.group = services.create_group(self.leader, 'Evening Circle', 'Talk it out', self.topic.topic_id)

    def test_creator_is_leader_and_admin(self, mock_realtime):
        self.assertEqual(self.group.leader, self.leader)
        member = GroupMember.objects.get(group=self.group, user=self.leader)
        self.assertEqual(member.role, GroupMember.Role.ADMIN)

    def test_join_and_duplicate_join(self, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        mock_realtime.notify_new_group_member.assert_called_once()
        with self.assertRaises(ForbiddenError):
            services.join_group(self.group.group_id, self.user)

    def test_join_inactive_or_full(self, mock_realtime):
        Group.objects.filter(pk=self.group.pk).update(is_active=False)
        with self.assertRaises(ForbiddenError):
            services.join_group(self.group.group_id, self.user)
        Group.objects.filter(pk=self.group.pk).update(is_active=True, max_members=1)
        with self.assertRaises(ForbiddenError):
            services.join_group(self.group.group_id, self.user)

    def test_full_group_join_adds_no_member(self, mock_realtime):
        Group.objects.filter(pk=self.group.pk).update(max_members=1)
        with self.assertRaisesMessage(ForbiddenError, 'Group is full'):
            services.join_group(self.group.group_id, self.user)
        self.assertEqual(GroupMember.objects.filter(group=self.group).count(), 1)
        mock_realtime.notify_new_group_member.assert_not_called()

    def test_join_missing_group(self, mock_realtime):
        with self.assertRaises(NotFoundError):
            services.join_group('00000000-0000-0000-0000-000000000000', self.user)

    def test_leave_rules(self, mock_realtime):
        with self.assertRaises(NotFoundError):
            services.leave_group(self.group.group_id, self.user)
        with self.assertRaises(ForbiddenError):
            services.leave_group(self.group.group_id, self.leader)
        services.join_group(self.group.group_id, self.user)
        services.leave_group(self.group.group_id, self.user)
        self.assertFalse(GroupMember.objects.filter(group=self.group, user=self.user).exists())

    def test_can_send_message(self, mock_realtime):
        self.assertEqual(services.can_send_message(self.group.group_id, self.user)[0], False)
        services.join_group(self.group.group_id, self.user)
        self.assertEqual(services.can_send_message(self.group.group_id, self.user), (True, ''))
        Group.objects.filter(pk=self.group.pk).update(is_active=False)
        self.assertFalse(services.can_send_message(self.group.group_id, self.user)[0])
        self.assertTrue(services.can_send_message(self.group.group_id, self.leader)[0])

    def test_banned_message_is_not_stored(self, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        with self.assertRaises(ForbiddenError) as ctx:
            services.send_group_message(self.group.group_id, self.user, 'cheap counterfeit watches')
        self.assertIn('Message blocked due to scam/illicit content', str(ctx.exception.detail))
        self.assertFalse(Message.objects.filter(group=self.group).exists())

    @patch('notifications_api.services.realtime.push_notification')
    def test_high_severity_escalates(self, mock_push, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        message, result = services.send_group_message(
            self.group.group_id, self.user, 'thinking about violence, attack, weapon'
        )
        self.assertEqual(result.suggested_action, 'LISTENER_RESPONSE')
        self.assertTrue(Message.objects.filter(pk=message.pk).exists())
        escalation = ListenerResponse.objects.get(message=message)
        self.assertEqual(escalation.status, ListenerResponse.Status.PENDING)
        self.assertEqual(escalation.flagged_user, self.user)
        self.assertTrue(Notification.objects.filter(
            user=self.leader, type=NotificationType.GROUP_ACTIVITY, related_id=str(escalation.response_id)
        ).exists())
        self.assertFalse(Notification.objects.filter(user=self.user, type=NotificationType.GROUP_ACTIVITY).exists())

    @patch('notifications_api.services.realtime.push_notification')
    def test_each_escalation_notifies_listeners(self, mock_push, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        services.send_group_message(self.group.group_id, self.user, 'violence attack weapon')
        services.send_group_message(self.group.group_id, self.user, 'kill attack weapon')
        self.assertEqual(ListenerResponse.objects.filter(group=self.group).count(), 2)
        self.assertEqual(
            Notification.objects.filter(user=self.leader, type=NotificationType.GROUP_ACTIVITY).count(), 2
        )

    @patch('notifications_api.services.realtime.push_notification')
    def test_listener_response_updates_pending_record(self, mock_push, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        message, _ = services.send_group_message(self.group.group_id, self.user, 'violence attack weapon')
        record = services.create_listener_response(self.group.group_id, self.user.user_id, self.leader, {
            'message_id': message.message_id,
            'response_content': 'We are here for you.',
            'response_type': 'SUPPORT',
            'follow_up_required': True,
        })
        self.assertEqual(ListenerResponse.objects.filter(group=self.group).count(), 1)
        self.assertEqual(record.status, ListenerResponse.Status.IN_PROGRESS)
        self.assertEqual(record.listener, self.leader)
        self.assertIsNotNone(record.responded_at)
        self.assertTrue(Notification.objects.filter(user=self.user, related_id=str(record.response_id)).exists())

    def test_plain_member_cannot_respond(self, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        other = make_user('other@example.com')
        with self.assertRaises(ForbiddenError):
            services.create_listener_response(self.group.group_id, other.user_id, self.user, {
                'response_content': 'x', 'response_type': 'SUPPORT',
            })

    def test_group_messages_pagination_newest_first(self, mock_realtime):
        services.join_group(self.group.group_id, self.user)
        for i in range(3):
            services.send_group_message(self.group.group_id, self.user, f'message {i}')
        items, pagination = services.get_group_messages(self.group.group_id, self.user, page=1, limit=2)
        self.assertEqual(pagination, {'page': 1, 'limit': 2, 'total': 3, 'pages': 2})
        self.assertEqual(items[0].content, 'message 2')

    def test_outsider_cannot_read_messages(self, mock_realtime):
        with self.assertRaises(ForbiddenError):
            services.get_group_messages(self.group.group_id, self.user)

    def test_anonymous_name_is_stable(self, mock_realtime):
        first = services.generate_anonymous_name(self.user.user_id, self.group.group_id)
        self.assertEqual(first, services.generate_anonymous_name(self.user.user_id, self.group.group_id))
        self.assertRegex(first, r'^[A-Z][a-z]+[A-Z][a-z]+\d{1,3}$')


@patch('groups_api.services.realtime')
class GroupViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.topic = Topic.objects.create(name='Work')
        self.user = make_user('user@example.com')
        self.client.force_authenticate(user=self.user)

    def test_create_join_and_post(self, mock_realtime):
        resp = self.client.post(reverse('group-list'), {
            'name': 'Coders', 'description': 'Burnout chat', 'topic_id': str(self.topic.topic_id),
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        group_id = resp.data['group_id']
        self.assertEqual(len(resp.data['members']), 1)

        joiner = make_user('joiner@example.com')
        self.client.force_authenticate(user=joiner)
        resp = self.client.post(reverse('group-join', args=[group_id]))
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertTrue(resp.data['anonymous_name'])

        resp = self.client.post(reverse('group-messages', args=[group_id]), {'content': 'hi all'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['content_filter']['suggested_action'], 'NONE')

        resp = self.client.post(reverse('group-messages', args=[group_id]), {'content': 'buy drugs, scam'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        resp = self.client.get(reverse('group-messages', args=[group_id]))
        self.assertEqual(resp.data['pagination']['total'], 1)

    def test_list_filters_by_topic(self, mock_realtime):
        other_topic = Topic.objects.create(name='Family')
        services.create_group(self.user, 'A', '', self.topic.topic_id)
        services.create_group(self.user, 'B', '', other_topic.topic_id)
        resp = self.client.get(reverse('group-list'), {'topic_id': str(self.topic.topic_id)})
        self.assertEqual([g['name'] for g in resp.data], ['A'])
        self.assertEqual(resp.data[0]['member_count'], 1)

    def test_can_send_endpoint(self, mock_realtime):
        group = services.create_group(make_user('lead@example.com'), 'C', '', self.topic.topic_id)
        resp = self.client.get(reverse('group-can-send', args=[group.group_id]))
        self.assertFalse(resp.data['can_send'])
