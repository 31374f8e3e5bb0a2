# apps/users/urls.py
from django.urls import path
from .views import LoginAPIView, CurrentUserView

urlpatterns = [
    path('login/', LoginAPIView.as_view(), name='login'),
    path('me/', CurrentUserView.as_view(), name='current-user'),
]
