from .session import Session
from .message import Message, MessageType

__all__ = ['Session', 'Message', 'MessageType']
