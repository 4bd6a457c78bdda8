from .listener_application import ListenerApplication

__all__ = ['ListenerApplication']
