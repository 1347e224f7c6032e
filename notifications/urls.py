from django.urls import path
from .views import EventStreamView

urlpatterns = [
    path("stream/", EventStreamView.as_view(), name="notifications-stream"),
]
