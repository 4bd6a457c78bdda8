"""Connection registry: which live websocket channels belong to which user and room.

Consumers and server-side helpers talk to the registry only through the
``ConnectionRegistry`` interface. The implementation is chosen by the
``CHAT_CONNECTION_REGISTRY`` setting:

- ``InMemoryConnectionRegistry`` keeps everything in process-local dicts. It is
  only correct when a single ASGI process serves every socket.
- ``ChannelLayerConnectionRegistry`` maps rooms and users onto channel-layer
  groups, so with ``channels_redis`` a broadcast reaches sockets held by any
  process. Presence counters live in the Django cache.

Delivery is fire-and-forget: nothing is queued for a channel that is gone.
"""

import abc
import logging
from collections import defaultdict
from functools import lru_cache
from typing import Dict, Optional, Set

from channels.layers import get_channel_layer
from django.conf import settings
from django.core.cache import cache
from django.utils.module_loading import import_string

logger = logging.getLogger('chat_api.registry')

# Channel-layer message type handled by ChatConsumer.chat_event
EVENT_MESSAGE_TYPE = 'chat.event'


def user_group_name(user_id) -> str:
    return f'user_{user_id}'


def _frame(event: str, data, exclude: Optional[str] = None) -> dict:
    return {'type': EVENT_MESSAGE_TYPE, 'event': event, 'data': data, 'exclude': exclude}


class ConnectionRegistry(abc.ABC):
    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    @abc.abstractmethod
    async def register(self, user_id, channel_name: str) -> None:
        ...

    @abc.abstractmethod
    async def unregister(self, user_id, channel_name: str) -> None:
        ...

    @abc.abstractmethod
    async def join(self, room: str, channel_name: str) -> None:
        ...

    @abc.abstractmethod
    async def leave(self, room: str, channel_name: str) -> None:
        ...

    @abc.abstractmethod
    async def lookup(self, user_id) -> Set[str]:
        """Channel names currently registered for ``user_id`` (may be empty)."""

    @abc.abstractmethod
    async def room_size(self, room: str) -> int:
        ...

    @abc.abstractmethod
    async def broadcast(self, room: str, event: str, data, exclude: Optional[str] = None) -> None:
        """Deliver ``event`` to every channel in ``room`` except ``exclude``."""

    @abc.abstractmethod
    async def send_to_user(self, user_id, event: str, data) -> None:
        ...

    async def is_connected(self, user_id) -> bool:
        return bool(await self.lookup(user_id))


class InMemoryConnectionRegistry(ConnectionRegistry):
    def __init__(self, channel_layer=None):
        super().__init__(channel_layer)
        self.user_channels: Dict[str, Set[str]] = defaultdict(set)
        self.room_channels: Dict[str, Set[str]] = defaultdict(set)

    async def register(self, user_id, channel_name):
        self.user_channels[str(user_id)].add(channel_name)

    async def unregister(self, user_id, channel_name):
        key = str(user_id)
        self.user_channels[key].discard(channel_name)
        if not self.user_channels[key]:
            del self.user_channels[key]
        for room in [r for r, chans in self.room_channels.items() if channel_name in chans]:
            await self.leave(room, channel_name)

    async def join(self, room, channel_name):
        self.room_channels[room].add(channel_name)

    async def leave(self, room, channel_name):
        chans = self.room_channels.get(room)
        if chans is None:
            return
        chans.discard(channel_name)
        if not chans:
            del self.room_channels[room]

    async def lookup(self, user_id):
        return set(self.user_channels.get(str(user_id), ()))

    async def room_size(self, room):
        return len(self.room_channels.get(room, ()))

    async def _deliver(self, channels, event, data, exclude=None):
        for channel_name in channels:
            if channel_name == exclude:
                continue
            try:
                await self.channel_layer.send(channel_name, _frame(event, data))
            except Exception as e:
                logger.warning(f"[registry] Delivery of {event} to {channel_name} failed: {e}")

    async def broadcast(self, room, event, data, exclude=None):
        await self._deliver(list(self.room_channels.get(room, ())), event, data, exclude)

    async def send_to_user(self, user_id, event, data):
        await self._deliver(list(self.user_channels.get(str(user_id), ())), event, data)


class ChannelLayerConnectionRegistry(ConnectionRegistry):
    """Rooms and users are channel-layer groups; counters live in the shared cache.

    Channel layers cannot enumerate group members, so ``lookup`` returns the
    cached channel set for the user and ``room_size`` a cached counter.
    """
    CACHE_PREFIX = 'chat_registry'
    CACHE_TTL = 60 * 60 * 24

    def _user_key(self, user_id):
        return f'{self.CACHE_PREFIX}:user:{user_id}'

    def _room_key(self, room):
        return f'{self.CACHE_PREFIX}:room:{room}'

    async def _add(self, key, member):
        members = set(await cache.aget(key) or ())
        members.add(member)
        await cache.aset(key, members, self.CACHE_TTL)

    async def _remove(self, key, member):
        members = set(await cache.aget(key) or ())
        members.discard(member)
        if members:
            await cache.aset(key, members, self.CACHE_TTL)
        else:
            await cache.adelete(key)

    async def register(self, user_id, channel_name):
        await self.channel_layer.group_add(user_group_name(user_id), channel_name)
        await self._add(self._user_key(user_id), channel_name)

    async def unregister(self, user_id, channel_name):
        await self.channel_layer.group_discard(user_group_name(user_id), channel_name)
        await self._remove(self._user_key(user_id), channel_name)

    async def join(self, room, channel_name):
        await self.channel_layer.group_add(room, channel_name)
        await self._add(self._room_key(room), channel_name)

    async def leave(self, room, channel_name):
        await self.channel_layer.group_discard(room, channel_name)
        await self._remove(self._room_key(room), channel_name)

    async def lookup(self, user_id):
        return set(await cache.aget(self._user_key(user_id)) or ())

    async def room_size(self, room):
        return len(await cache.aget(self._room_key(room)) or ())

    async def broadcast(self, room, event, data, exclude=None):
        # The receiving consumer drops the frame when it is the excluded channel
        await self.channel_layer.group_send(room, _frame(event, data, exclude))

    async def send_to_user(self, user_id, event, data):
        await self.channel_layer.group_send(user_group_name(user_id), _frame(event, data))


@lru_cache(maxsize=1)
def get_connection_registry() -> ConnectionRegistry:
    path = getattr(settings, 'CHAT_CONNECTION_REGISTRY', 'chat_api.registry.InMemoryConnectionRegistry')
    registry = import_string(path)()
    logger.info(f"[registry] Using {path}")
    return registry


def reset_connection_registry() -> None:
    get_connection_registry.cache_clear()
