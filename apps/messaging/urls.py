# apps/messaging/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path('conversations/', views.ConversationListCreateView.as_view(), name='chat-conversations'),
    path('conversations/<int:pk>/', views.ConversationDetailView.as_view(), name='chat-detail'),
    path('conversations/<int:pk>/archive/', views.ConversationStatusView.as_view(status_action='archive'), name='chat-archive'),
    path('conversations/<int:pk>/unarchive/', views.ConversationStatusView.as_view(status_action='unarchive'), name='chat-unarchive'),
    path('conversations/<int:pk>/block/', views.ConversationStatusView.as_view(status_action='block'), name='chat-block'),
    path('conversations/<int:pk>/unblock/', views.ConversationStatusView.as_view(status_action='unblock'), name='chat-unblock'),
    path('conversations/<int:pk>/messages/', views.ConversationMessagesView.as_view(), name='chat-messages'),
    path('conversations/<int:pk>/messages/read/', views.MarkReadView.as_view(), name='chat-mark-read'),
    path('messages/<int:pk>/', views.MessageDetailView.as_view(), name='chat-message-detail'),
    path('messages/<int:pk>/report/', views.ReportMessageView.as_view(), name='chat-message-report'),
    path('unread-count/', views.UnreadCountView.as_view(), name='chat-unread-count'),
    path('attachments/', views.AttachmentUploadView.as_view(), name='chat-attachments'),
]
