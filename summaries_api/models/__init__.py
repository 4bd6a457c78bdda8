from .session_summary import SessionSummary
from .group_summary import GroupSummary

__all__ = ['SessionSummary', 'GroupSummary']
