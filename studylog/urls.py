from django.urls import path
from .views import SessionEndView, SessionListView, SessionStartView, StatsView

urlpatterns = [
    path("sessions", SessionListView.as_view(), name="session-list"),
    path("sessions/start", SessionStartView.as_view(), name="session-start"),
    path("sessions/<str:session_id>/end", SessionEndView.as_view(), name="session-end"),
    path("stats", StatsView.as_view(), name="stats"),
]
