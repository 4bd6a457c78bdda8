from .meeting import Meeting

__all__ = ['Meeting']
