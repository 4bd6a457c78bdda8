from .custom_user import Custom_User, CustomUserManager

__all__ = ["Custom_User", "CustomUserManager"]
