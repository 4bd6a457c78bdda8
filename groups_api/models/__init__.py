from .group import Group
from .group_member import GroupMember
from .listener_response import ListenerResponse

__all__ = ['Group', 'GroupMember', 'ListenerResponse']
