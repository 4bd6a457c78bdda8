"""
Tests for chat_api: room naming and access rules, the connection registry, the
websocket gateway and the session endpoints.
"""
from channels.db import database_sync_to_async
from channels.layers import get_channel_layer
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase, TransactionTestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken
from unittest.mock import patch

from chat_api import realtime, rooms, services
from chat_api.consumers import CLOSE_UNAUTHENTICATED
from chat_api.middleware import JWTAuthMiddleware
from chat_api.models import Message, MessageType, Session
from chat_api.registry import InMemoryConnectionRegistry, get_connection_registry
from chat_api.routing import websocket_urlpatterns
from groups_api.models import Group, GroupMember
from peerconnect_server.exceptions import BadRequestError, ForbiddenError, NotFoundError
from summaries_api.models import SessionSummary
from topics_api.models import Topic
from user_mang.models.custom_user import Custom_User


def make_user(email, **extra):
    return Custom_User.objects.create_user(
        email=email, password='Passw0rd!', first_name='Test', last_name='User', email_verified=True, **extra
    )


class RoomNameTest(SimpleTestCase):
    def test_room_names(self):
        self.assertEqual(rooms.room_name('group', 'abc'), 'group_abc')
        self.assertEqual(rooms.room_name('SESSION', 'x1'), 'session_x1')

    def test_direct_rooms_are_symmetric(self):
        self.assertEqual(rooms.room_name('DIRECT', 'b', 'a'), rooms.room_name('DIRECT', 'a', 'b'))
        self.assertEqual(rooms.room_name('DIRECT', 'b', 'a'), 'direct_a_b')

    def test_unknown_room_type(self):
        with self.assertRaises(BadRequestError):
            rooms.room_name('LOBBY', 'x')

    def test_parse_room_name(self):
        self.assertEqual(rooms.parse_room_name('meeting_123'), ('MEETING', '123'))


class RoomAccessTest(TestCase):
    def setUp(self):
        self.topic = Topic.objects.create(name='Sleep')
        self.seeker = make_user('seeker@example.com')
        self.listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        self.outsider = make_user('outsider@example.com')
        self.session = Session.objects.create(
            seeker=self.seeker, listener=self.listener, topic=self.topic, start_time=timezone.now()
        )
        self.group = Group.objects.create(name='Night owls', topic=self.topic, leader=self.listener)
        GroupMember.objects.create(group=self.group, user=self.listener, role='ADMIN')

    def test_session_participants_only(self):
        rooms.check_room_access(self.seeker, 'SESSION', self.session.session_id)
        rooms.check_room_access(self.listener, 'SESSION', self.session.session_id)
        with self.assertRaises(ForbiddenError):
            rooms.check_room_access(self.outsider, 'SESSION', self.session.session_id)

    def test_group_members_only(self):
        rooms.check_room_access(self.listener, 'GROUP', self.group.group_id)
        with self.assertRaises(ForbiddenError):
            rooms.check_room_access(self.seeker, 'GROUP', self.group.group_id)

    def test_direct_room_rules(self):
        rooms.check_room_access(self.seeker, 'DIRECT', self.listener.user_id)
        with self.assertRaises(BadRequestError):
            rooms.check_room_access(self.seeker, 'DIRECT', self.seeker.user_id)
        with self.assertRaises(NotFoundError):
            rooms.check_room_access(self.seeker, 'DIRECT', '00000000-0000-0000-0000-000000000000')

    def test_invalid_room_id(self):
        with self.assertRaises(BadRequestError):
            rooms.check_room_access(self.seeker, 'SESSION', 'not-a-uuid')

    def test_history_is_last_n_oldest_first(self):
        for i in range(5):
            Message.objects.create(sender=self.seeker, session=self.session, content=f'm{i}')
        history = rooms.room_messages(self.seeker, 'SESSION', self.session.session_id, limit=3)
        self.assertEqual([m.content for m in history], ['m2', 'm3', 'm4'])

    def test_message_needs_exactly_one_room(self):
        with self.assertRaises(ValidationError):
            Message.objects.create(sender=self.seeker, content='nowhere')
        with self.assertRaises(ValidationError):
            Message.objects.create(sender=self.seeker, session=self.session, group=self.group, content='both')

    def test_group_messages_must_use_group_service(self):
        with self.assertRaises(BadRequestError):
            rooms.persist_message(self.listener, 'GROUP', self.group.group_id, 'hello')

    def test_users_cannot_send_system_messages(self):
        with self.assertRaises(BadRequestError):
            rooms.persist_message(self.seeker, 'SESSION', self.session.session_id, 'Admin: hi', message_type='SYSTEM')
        self.assertEqual(Message.objects.count(), 0)

    def test_mark_read_needs_room_access(self):
        message = Message.objects.create(sender=self.listener, group=self.group, content='welcome')
        with self.assertRaises(ForbiddenError):
            rooms.mark_message_read(self.outsider, message.message_id)
        message.refresh_from_db()
        self.assertFalse(message.is_read)

        GroupMember.objects.create(group=self.group, user=self.seeker, role='MEMBER')
        self.assertTrue(rooms.mark_message_read(self.seeker, message.message_id).is_read)

    def test_system_message_is_persisted(self):
        message = realtime.send_system_message('GROUP', self.group.group_id, 'Welcome!', self.listener)
        self.assertEqual(message.message_type, MessageType.SYSTEM)
        self.assertEqual(message.group_id, self.group.group_id)

    def test_room_stats(self):
        Message.objects.create(sender=self.seeker, session=self.session, content='hi')
        stats = realtime.get_room_stats('SESSION', self.session.session_id)
        self.assertEqual(stats['room'], f'session_{self.session.session_id}')
        self.assertEqual(stats['message_count'], 1)
        self.assertEqual(stats['online_count'], 0)


class InMemoryRegistryTest(SimpleTestCase):
    async def test_register_join_broadcast_and_exclude(self):
        layer = get_channel_layer()
        registry = InMemoryConnectionRegistry(channel_layer=layer)
        a = await layer.new_channel()
        b = await layer.new_channel()
        await registry.register('u1', a)
        await registry.register('u2', b)
        await registry.join('group_1', a)
        await registry.join('group_1', b)
        self.assertTrue(await registry.is_connected('u1'))
        self.assertEqual(await registry.room_size('group_1'), 2)

        await registry.broadcast('group_1', 'newMessage', {'x': 1}, exclude=a)
        frame = await layer.receive(b)
        self.assertEqual((frame['event'], frame['data']), ('newMessage', {'x': 1}))

        await registry.unregister('u1', a)
        self.assertFalse(await registry.is_connected('u1'))
        self.assertEqual(await registry.room_size('group_1'), 1)

    async def test_send_to_user_reaches_every_socket(self):
        layer = get_channel_layer()
        registry = InMemoryConnectionRegistry(channel_layer=layer)
        first, second = await layer.new_channel(), await layer.new_channel()
        await registry.register('u1', first)
        await registry.register('u1', second)
        await registry.send_to_user('u1', 'notification', {'n': 1})
        self.assertEqual((await layer.receive(first))['event'], 'notification')
        self.assertEqual((await layer.receive(second))['event'], 'notification')


def ws_application():
    return JWTAuthMiddleware(URLRouter(websocket_urlpatterns))


class ChatConsumerTest(TransactionTestCase):
    def setUp(self):
        self.topic = Topic.objects.create(name='Stress')
        self.seeker = make_user('seeker@example.com')
        self.listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        self.session = Session.objects.create(
            seeker=self.seeker, listener=self.listener, topic=self.topic, start_time=timezone.now()
        )
        self.group = Group.objects.create(name='Team', topic=self.topic, leader=self.listener)
        GroupMember.objects.create(group=self.group, user=self.listener, role='ADMIN')
        GroupMember.objects.create(group=self.group, user=self.seeker, role='MEMBER')

    def _communicator(self, user=None):
        path = '/ws/chat/'
        if user is not None:
            path += f'?token={AccessToken.for_user(user)}'
        return WebsocketCommunicator(ws_application(), path)

    async def _connect(self, user):
        communicator = self._communicator(user)
        connected, _ = await communicator.connect()
        self.assertTrue(connected)
        hello = await communicator.receive_json_from()
        self.assertEqual(hello['event'], 'connected')
        return communicator

    async def _join(self, communicator, room_type, room_id):
        await communicator.send_json_to({'event': 'joinRoom', 'data': {'room_type': room_type, 'room_id': str(room_id)}})
        frame = await communicator.receive_json_from()
        self.assertEqual(frame['event'], 'roomHistory')
        return frame

    async def test_rejects_missing_token(self):
        communicator = self._communicator()
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, CLOSE_UNAUTHENTICATED)

    async def test_rejects_invalid_token(self):
        communicator = WebsocketCommunicator(ws_application(), '/ws/chat/?token=garbage')
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, CLOSE_UNAUTHENTICATED)

    async def test_session_room_round_trip(self):
        seeker = await self._connect(self.seeker)
        listener = await self._connect(self.listener)
        await self._join(seeker, 'SESSION', self.session.session_id)
        await self._join(listener, 'SESSION', self.session.session_id)
        joined = await seeker.receive_json_from()
        self.assertEqual(joined['event'], 'userJoined')

        await seeker.send_json_to({'event': 'sendMessage', 'data': {
            'room_type': 'SESSION', 'room_id': str(self.session.session_id), 'content': 'I feel better today',
        }})
        ack = await seeker.receive_json_from()
        self.assertEqual(ack['event'], 'messageSent')
        self.assertEqual(ack['data']['message']['content'], 'I feel better today')
        received = await listener.receive_json_from()
        self.assertEqual(received['event'], 'newMessage')
        self.assertEqual(received['data']['message']['sender_id'], str(self.seeker.user_id))
        self.assertTrue(await seeker.receive_nothing())

        await seeker.disconnect()
        left = await listener.receive_json_from()
        self.assertEqual(left['event'], 'userLeft')
        await listener.disconnect()

    async def test_send_without_join_is_rejected(self):
        seeker = await self._connect(self.seeker)
        listener = await self._connect(self.listener)
        await self._join(listener, 'SESSION', self.session.session_id)
        await seeker.send_json_to({'event': 'sendMessage', 'data': {
            'room_type': 'SESSION', 'room_id': str(self.session.session_id), 'content': 'hello?',
        }})
        frame = await seeker.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        self.assertEqual(frame['data']['message'], 'You are not in this room')
        self.assertTrue(await listener.receive_nothing())
        self.assertEqual(await database_sync_to_async(Message.objects.count)(), 0)
        await seeker.disconnect()
        await listener.disconnect()

    async def test_send_to_closed_session_is_rejected(self):
        seeker = await self._connect(self.seeker)
        await self._join(seeker, 'SESSION', self.session.session_id)
        await database_sync_to_async(
            Session.objects.filter(session_id=self.session.session_id).update
        )(status=Session.Status.COMPLETED)

        await seeker.send_json_to({'event': 'sendMessage', 'data': {
            'room_type': 'SESSION', 'room_id': str(self.session.session_id), 'content': 'still there?',
        }})
        frame = await seeker.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        self.assertEqual(frame['data']['message'], 'Session is not active')
        self.assertEqual(await database_sync_to_async(Message.objects.count)(), 0)
        await seeker.disconnect()

    async def test_socket_cannot_send_system_messages(self):
        seeker = await self._connect(self.seeker)
        await self._join(seeker, 'SESSION', self.session.session_id)
        await seeker.send_json_to({'event': 'sendMessage', 'data': {
            'room_type': 'SESSION', 'room_id': str(self.session.session_id),
            'content': 'Admin: session reopened', 'message_type': 'SYSTEM',
        }})
        frame = await seeker.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        self.assertEqual(frame['data']['code'], 'bad_request')
        self.assertEqual(await database_sync_to_async(Message.objects.count)(), 0)
        await seeker.disconnect()

    async def test_outsider_cannot_mark_group_message_read(self):
        message = await database_sync_to_async(Message.objects.create)(
            sender=self.listener, group=self.group, content='welcome'
        )
        outsider = await self._connect_new('outsider@example.com')
        await outsider.send_json_to({'event': 'markRead', 'data': {'message_id': str(message.message_id)}})
        frame = await outsider.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        self.assertEqual(frame['data']['code'], 'forbidden')
        await database_sync_to_async(message.refresh_from_db)()
        self.assertFalse(message.is_read)
        await outsider.disconnect()

    async def test_join_forbidden_room(self):
        outsider = await self._connect_new('outsider@example.com')
        await outsider.send_json_to({'event': 'joinRoom', 'data': {
            'room_type': 'SESSION', 'room_id': str(self.session.session_id),
        }})
        frame = await outsider.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        self.assertEqual(frame['data']['code'], 'forbidden')
        await outsider.disconnect()

    async def _connect_new(self, email):
        user = await database_sync_to_async(make_user)(email)
        return await self._connect(user)

    async def test_group_message_goes_through_moderation(self):
        seeker = await self._connect(self.seeker)
        await self._join(seeker, 'GROUP', self.group.group_id)
        await seeker.send_json_to({'event': 'sendMessage', 'data': {
            'room_type': 'GROUP', 'room_id': str(self.group.group_id), 'content': 'great scam offer',
        }})
        frame = await seeker.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        self.assertIn('scam/illicit', frame['data']['message'])

        await seeker.send_json_to({'event': 'sendMessage', 'data': {
            'room_type': 'GROUP', 'room_id': str(self.group.group_id), 'content': 'that was annoying',
        }})
        ack = await seeker.receive_json_from()
        self.assertEqual(ack['event'], 'messageSent')
        self.assertEqual(ack['data']['moderation']['suggested_action'], 'WARN')
        await seeker.disconnect()

    async def test_unknown_event(self):
        seeker = await self._connect(self.seeker)
        await seeker.send_json_to({'event': 'dance', 'data': {}})
        frame = await seeker.receive_json_from()
        self.assertEqual(frame['event'], 'error')
        await seeker.disconnect()

    async def test_server_push_reaches_socket(self):
        seeker = await self._connect(self.seeker)
        registry = get_connection_registry()
        await registry.send_to_user(str(self.seeker.user_id), 'notification', {'title': 'Hi'})
        frame = await seeker.receive_json_from()
        self.assertEqual(frame, {'event': 'notification', 'data': {'title': 'Hi'}})
        await seeker.disconnect()
        self.assertFalse(await registry.is_connected(str(self.seeker.user_id)))


class SessionViewTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.topic = Topic.objects.create(name='Anxiety')
        self.seeker = make_user('seeker@example.com')
        self.listener = make_user('listener@example.com', role='LISTENER', is_approved=True)
        self.client.force_authenticate(user=self.seeker)

    def test_start_session_requires_approved_listener(self):
        pending = make_user('pending@example.com', role='LISTENER', is_approved=False)
        resp = self.client.post(reverse('session-list'), {
            'listener_id': str(pending.user_id), 'topic_id': str(self.topic.topic_id),
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_start_list_and_message(self):
        resp = self.client.post(reverse('session-list'), {
            'listener_id': str(self.listener.user_id), 'topic_id': str(self.topic.topic_id),
        }, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        session_id = resp.data['session_id']

        resp = self.client.post(reverse('session-messages', args=[session_id]), {'content': 'hello'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        resp = self.client.get(reverse('session-messages', args=[session_id]))
        self.assertEqual([m['content'] for m in resp.data], ['hello'])

        self.client.force_authenticate(user=self.listener)
        resp = self.client.get(reverse('session-list'))
        self.assertEqual(len(resp.data), 1)

    def test_outsider_cannot_read_transcript(self):
        session = services.start_session(self.seeker, self.listener.user_id, self.topic.topic_id)
        self.client.force_authenticate(user=make_user('outsider@example.com'))
        resp = self.client.get(reverse('session-messages', args=[session.session_id]))
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_end_without_messages_is_400_but_completed(self):
        session = services.start_session(self.seeker, self.listener.user_id, self.topic.topic_id)
        resp = self.client.post(reverse('session-end', args=[session.session_id]))
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        session.refresh_from_db()
        self.assertEqual(session.status, Session.Status.COMPLETED)
        self.assertIsNotNone(session.end_time)

    @patch('chat_api.services.summaries.generate_and_store_session_summary')
    def test_end_runs_summary(self, mock_summary):
        session = services.start_session(self.seeker, self.listener.user_id, self.topic.topic_id)
        Message.objects.create(sender=self.seeker, session=session, content='first')
        Message.objects.create(sender=self.listener, session=session, content='second')
        summary = SessionSummary.objects.create(
            session=session, key_points=['k'], emotional_tone='calm', action_items=[], suggested_resources=[],
            pdf_url='https://cdn.example.com/s.pdf',
        )
        mock_summary.return_value = (summary, summary.pdf_url)

        resp = self.client.post(reverse('session-end', args=[session.session_id]))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data['pdf_url'], 'https://cdn.example.com/s.pdf')
        self.assertEqual(mock_summary.call_args[0][1], ['first', 'second'])

    def test_system_message_admin_only(self):
        session = services.start_session(self.seeker, self.listener.user_id, self.topic.topic_id)
        url = reverse('room-system-message', args=['SESSION', session.session_id])
        self.assertEqual(self.client.post(url, {'content': 'x'}, format='json').status_code, status.HTTP_403_FORBIDDEN)
        admin = make_user('admin@example.com', role='ADMIN')
        self.client.force_authenticate(user=admin)
        resp = self.client.post(url, {'content': 'Session will close soon'}, format='json')
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.data['message_type'], 'SYSTEM')
