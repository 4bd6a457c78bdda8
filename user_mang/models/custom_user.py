from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ValidationError
from django.utils import timezone
import uuid


class CustomUserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The given email must be set')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        # Django's hasher stack (bcrypt first, see PASSWORD_HASHERS)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Custom_User.Role.ADMIN)
        extra_fields.setdefault('email_verified', True)
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class Custom_User(AbstractUser):
    class Role(models.TextChoices):
        USER = 'USER', 'User'
        LISTENER = 'LISTENER', 'Listener'
        ADMIN = 'ADMIN', 'Admin'

    class Status(models.TextChoices):
        ONLINE = 'ONLINE', 'Online'
        OFFLINE = 'OFFLINE', 'Offline'
        BUSY = 'BUSY', 'Busy'
        AVAILABLE = 'AVAILABLE', 'Available'

    user_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)  # Represents userID as the primary key
    id = None
    username = None  # email is the login identifier
    email = models.EmailField(max_length=254, unique=True)
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    profile_picture = models.URLField(max_length=500, blank=True, null=True)
    bio = models.TextField(blank=True, null=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.USER)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.OFFLINE)
    last_modified = models.DateTimeField(auto_now=True)

    # Email verification fields
    email_verified = models.BooleanField(default=False, help_text="Has the user verified their email?")
    verification_code = models.CharField(max_length=6, blank=True, null=True, help_text="6-digit email verification code")
    verification_code_expires = models.DateTimeField(blank=True, null=True)
    # Password reset
    reset_token = models.CharField(max_length=64, blank=True, null=True, unique=True)
    reset_token_expires = models.DateTimeField(blank=True, null=True)

    # Listener approval and onboarding
    is_approved = models.BooleanField(default=False, help_text="Listener approved by an admin")
    profile_completed = models.BooleanField(default=False)
    topics = models.ManyToManyField('topics_api.Topic', related_name='users', blank=True)

    groups = models.ManyToManyField(
        'auth.Group',
        related_name='custom_user_groups',  # Custom related name
        blank=True
    )
    user_permissions = models.ManyToManyField(
        'auth.Permission',
        related_name='custom_user_permissions',  # Custom related name
        blank=True
    )

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = CustomUserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=['role', 'status']),
        ]

    def clean(self):
        super().clean()
        if not self.email:
            raise ValidationError({'email': 'This field is required.'})

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin_role(self):
        return self.role == self.Role.ADMIN

    @property
    def is_listener_role(self):
        return self.role == self.Role.LISTENER

    def verification_code_valid(self, code: str) -> bool:
        if not self.verification_code or not self.verification_code_expires:
            return False
        return self.verification_code == str(code) and self.verification_code_expires >= timezone.now()

    def __str__(self):
        return f"User(id={self.user_id}, email={self.email}, role={self.role})"
