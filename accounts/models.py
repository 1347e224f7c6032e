from datetime import timedelta

from django.conf import settings
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import PermissionsMixin
from django.db import models
from django.utils import timezone
from django.utils.crypto import get_random_string


def generate_code(length=6):
    """Random numeric code (OTP / temporary password)."""
    return get_random_string(length, allowed_chars="0123456789")


# Custom manager for User model
class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("The Email must be set")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.Roles.ADMIN)
        extra_fields.setdefault("is_email_verified", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    def get_by_email(self, email):
        return self.get(email__iexact=email.strip())


class User(AbstractBaseUser, PermissionsMixin):
    class Roles(models.TextChoices):
        USER = "user", "User"
        ADMIN = "admin", "Administrator"

    name = models.CharField(max_length=50)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=20, choices=Roles.choices, default=Roles.USER)
    avatar = models.CharField(max_length=255, default="default.jpg", blank=True)
    bio = models.CharField(max_length=500, blank=True)

    # e-mail verification
    is_email_verified = models.BooleanField(default=False)
    otp_hash = models.CharField(max_length=128, blank=True)
    otp_expires = models.DateTimeField(null=True, blank=True)

    # account recovery
    temp_password_hash = models.CharField(max_length=128, blank=True)
    temp_password_expires = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["name"]  # asked by createsuperuser

    objects = UserManager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @property
    def is_admin(self):
        return self.role == self.Roles.ADMIN or self.is_superuser

    # One-time code for e-mail verification

    def generate_otp(self):
        """Store a hashed 6-digit code and return the plain one (to be mailed)."""
        otp = generate_code()
        self.otp_hash = make_password(otp)
        self.otp_expires = timezone.now() + timedelta(minutes=settings.OTP_TTL_MINUTES)
        return otp

    def otp_expired(self, now=None):
        now = now or timezone.now()
        return self.otp_expires is None or self.otp_expires < now

    def check_otp(self, otp):
        if not self.otp_hash or self.otp_expired():
            return False
        return check_password(str(otp), self.otp_hash)

    def clear_otp(self):
        self.otp_hash = ""
        self.otp_expires = None

    # Temporary password for recovery / first login

    def generate_temp_password(self):
        temp_password = generate_code()
        self.temp_password_hash = make_password(temp_password)
        self.temp_password_expires = timezone.now() + timedelta(minutes=settings.TEMP_PASSWORD_TTL_MINUTES)
        return temp_password

    def check_temp_password(self, raw_password, now=None):
        now = now or timezone.now()
        if not self.temp_password_hash or self.temp_password_expires is None:
            return False
        if self.temp_password_expires <= now:
            return False
        return check_password(raw_password, self.temp_password_hash)

    def clear_temp_password(self):
        self.temp_password_hash = ""
        self.temp_password_expires = None
