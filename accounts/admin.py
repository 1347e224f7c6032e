from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    # Registers the custom User model with the admin site
    list_display = ("id", "email", "name", "role", "is_email_verified", "is_staff", "is_active", "created_at", "last_login")
    list_filter = ("role", "is_email_verified", "is_staff", "is_superuser", "is_active", "groups")
    search_fields = ("email", "name",)
    readonly_fields = ("last_login", "created_at", "otp_expires", "temp_password_expires",)
    ordering = ("email", "-created_at",)

    fieldsets = (                                 # Layout for editing existing users
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("name", "role", "avatar", "bio",)}),
        ("Verification", {"fields": ("is_email_verified", "otp_expires", "temp_password_expires")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Important dates", {"fields": ("last_login", "created_at")}),
    )
    add_fieldsets = (                             # Layout for creating new users
        (None, {"classes": ("wide",), "fields": ("email", "name", "role", "password1", "password2")}),
    )
