from django.contrib import admin
from .models import Chat, Message


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    fields = ("sender", "recipient", "content", "is_read", "created_at")
    readonly_fields = ("created_at",)


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ("id", "property", "participants_col", "created_at", "updated_at")
    list_select_related = ("property",)
    search_fields = ("participants__email", "property__title")
    ordering = ("-updated_at",)
    inlines = [MessageInline]

    @admin.display(description="Participants")
    def participants_col(self, obj):
        return ", ".join(p.email for p in obj.participants.all())

    def get_queryset(self, request):
        return super().get_queryset(request).prefetch_related("participants")


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "chat", "sender", "recipient", "is_read", "created_at")
    list_select_related = ("chat", "sender", "recipient")
    search_fields = ("sender__email", "recipient__email", "content")
    list_filter = (
        "is_read",
        ("sender", admin.RelatedOnlyFieldListFilter),
        ("recipient", admin.RelatedOnlyFieldListFilter),
    )
    ordering = ("-id",)
