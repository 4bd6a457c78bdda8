import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from chat_api import events, rooms
from chat_api import services as chat_services
from chat_api.models import MessageType
from chat_api.registry import get_connection_registry
from groups_api import services as group_services
from peerconnect_server.exceptions import BadRequestError, ServiceError

logger = logging.getLogger('chat_api.consumers')

# Close code sent when the handshake carries no valid access token
CLOSE_UNAUTHENTICATED = 4001


class ChatConsumer(AsyncWebsocketConsumer):
    """Realtime chat gateway.

    Frames in both directions are ``{"event": <name>, "data": {...}}``. A socket
    must be authenticated at connect time and must ``joinRoom`` before it can
    send to, type in, or receive broadcasts from a room.
    """

    async def connect(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            logger.warning("[ChatConsumer] Rejected websocket without a valid token")
            await self.close(code=CLOSE_UNAUTHENTICATED)
            return
        self.user = user
        self.user_id = str(user.pk)
        self.rooms = set()
        self.registry = get_connection_registry()
        await self.accept()
        await self.registry.register(self.user_id, self.channel_name)
        logger.info(f"[ChatConsumer] User {self.user_id} connected on {self.channel_name}")
        await self.emit(events.Connected(user_id=self.user_id))

    async def disconnect(self, close_code):
        if not hasattr(self, 'registry'):
            return
        for room in list(self.rooms):
            await self.registry.leave(room, self.channel_name)
            await self.registry.broadcast(
                room, events.UserLeft.event, events.UserLeft(user_id=self.user_id, room=room).to_data()
            )
        self.rooms.clear()
        await self.registry.unregister(self.user_id, self.channel_name)
        logger.info(f"[ChatConsumer] User {self.user_id} disconnected ({close_code})")

    async def receive(self, text_data=None, bytes_data=None):
        try:
            frame = json.loads(text_data or '')
        except ValueError:
            await self.emit(events.ErrorEvent(message='Invalid JSON frame', code='bad_request'))
            return
        if not isinstance(frame, dict):
            await self.emit(events.ErrorEvent(message='Invalid frame', code='bad_request'))
            return
        handler = self.handlers.get(frame.get('event'))
        if handler is None:
            await self.emit(events.ErrorEvent(message=f"Unknown event: {frame.get('event')}", code='bad_request'))
            return
        data = frame.get('data') or {}
        try:
            await handler(self, data)
        except ServiceError as e:
            await self.emit(events.ErrorEvent(message=str(e.detail), code=e.default_code))
        except Exception as e:
            logger.exception(f"[ChatConsumer] {frame.get('event')} failed for {self.user_id}: {e}")
            await self.emit(events.ErrorEvent(message='Internal server error', code='internal_error'))

    async def emit(self, evt: events.ServerEvent):
        await self.send(text_data=json.dumps(events.frame(evt)))

    async def chat_event(self, event):
        """Channel-layer frames pushed through the connection registry."""
        if event.get('exclude') and event['exclude'] == self.channel_name:
            return
        await self.send(text_data=json.dumps({'event': event['event'], 'data': event['data']}))

    def _room(self, data):
        room_type = (data.get('room_type') or '').upper()
        room_id = data.get('room_id')
        if not room_id:
            raise BadRequestError('room_id is required')
        return room_type, str(room_id), rooms.room_name(room_type, room_id, self.user_id)

    async def on_join_room(self, data):
        room_type, room_id, room = self._room(data)
        await database_sync_to_async(rooms.check_room_access)(self.user, room_type, room_id)
        await self.registry.join(room, self.channel_name)
        self.rooms.add(room)
        logger.info(f"[ChatConsumer] User {self.user_id} joined {room}")
        await self.registry.broadcast(
            room,
            events.UserJoined.event,
            events.UserJoined(user_id=self.user_id, room=room, user_name=self.user.full_name).to_data(),
            exclude=self.channel_name,
        )
        history = await database_sync_to_async(self._history)(room_type, room_id)
        await self.emit(events.RoomHistory(room=room, messages=history))

    def _history(self, room_type, room_id):
        return [rooms.serialize_message(m) for m in rooms.room_messages(self.user, room_type, room_id)]

    async def on_leave_room(self, data):
        _, _, room = self._room(data)
        if room not in self.rooms:
            return
        await self.registry.leave(room, self.channel_name)
        self.rooms.discard(room)
        await self.registry.broadcast(
            room, events.UserLeft.event, events.UserLeft(user_id=self.user_id, room=room).to_data()
        )
        logger.info(f"[ChatConsumer] User {self.user_id} left {room}")

    async def on_send_message(self, data):
        room_type, room_id, room = self._room(data)
        if room not in self.rooms:
            await self.emit(events.ErrorEvent(message='You are not in this room', code='forbidden'))
            return
        message, moderation = await database_sync_to_async(self._store)(room_type, room_id, data)
        evt = events.NewMessage(room=room, message=message)
        if room_type == rooms.DIRECT:
            # Direct messages reach every live socket of the recipient, joined or not
            await self.registry.send_to_user(room_id, evt.event, evt.to_data())
        else:
            await self.registry.broadcast(room, evt.event, evt.to_data(), exclude=self.channel_name)
        await self.emit(events.MessageSent(room=room, message=message, moderation=moderation))

    def _store(self, room_type, room_id, data):
        content = data.get('content') or ''
        if room_type == rooms.GROUP:
            message, result = group_services.send_group_message(room_id, self.user, content)
            return rooms.serialize_message(message), result.to_dict()
        message_type = data.get('message_type') or MessageType.TEXT
        file_url = data.get('file_url')
        if room_type == rooms.SESSION:
            # Same ACTIVE check as the REST endpoint
            message = chat_services.send_session_message(room_id, self.user, content, message_type, file_url)
        else:
            message = rooms.persist_message(
                self.user, room_type, room_id, content, message_type=message_type, file_url=file_url,
            )
        return rooms.serialize_message(message), None

    async def on_typing(self, data):
        _, _, room = self._room(data)
        if room in self.rooms:
            await self.registry.broadcast(
                room,
                events.UserTyping.event,
                events.UserTyping(user_id=self.user_id, room=room).to_data(),
                exclude=self.channel_name,
            )

    async def on_stop_typing(self, data):
        _, _, room = self._room(data)
        if room in self.rooms:
            await self.registry.broadcast(
                room,
                events.UserStopTyping.event,
                events.UserStopTyping(user_id=self.user_id, room=room).to_data(),
                exclude=self.channel_name,
            )

    async def on_mark_read(self, data):
        message_id = data.get('message_id')
        if not message_id:
            raise BadRequestError('message_id is required')
        await database_sync_to_async(rooms.mark_message_read)(self.user, message_id)
        room = data.get('room')
        evt = events.MessageRead(message_id=str(message_id), read_by=self.user_id, room=room)
        if room and room in self.rooms:
            await self.registry.broadcast(room, evt.event, evt.to_data())
        else:
            await self.emit(evt)

    handlers = {
        'joinRoom': on_join_room,
        'leaveRoom': on_leave_room,
        'sendMessage': on_send_message,
        'typing': on_typing,
        'stopTyping': on_stop_typing,
        'markRead': on_mark_read,
    }
