# apps/messaging/views.py
from rest_framework import generics, status
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response

from .attachments import upload_attachment
from .serializers import (
    AttachmentUploadSerializer,
    ConversationFilterSerializer,
    ConversationSerializer,
    CreateConversationSerializer,
    MessagePageSerializer,
    MessageReportSerializer,
    MessageSerializer,
    ReportMessageSerializer,
    SendMessageSerializer,
)
from .services import conversations, messages, unread


# ========================================
# CONVERSATIONS
# ========================================
class ConversationListCreateView(generics.GenericAPIView):
    serializer_class = ConversationSerializer

    def get(self, request):
        filters = ConversationFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        items, pagination = conversations.list_conversations(request.user, **filters.validated_data)

        return Response({
            "success": True,
            "data": self.get_serializer(items, many=True).data,
            "pagination": pagination,
        })

    def post(self, request):
        payload = CreateConversationSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        conversation, created = conversations.get_or_create_conversation(
            payload.validated_data.get('job_id'),
            payload.validated_data['client_id'],
            payload.validated_data['worker_id'],
            requested_by=request.user,
        )

        return Response({
            "success": True,
            "created": created,
            "data": self.get_serializer(conversation).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class ConversationDetailView(generics.GenericAPIView):
    serializer_class = ConversationSerializer

    def get(self, request, pk):
        conversation = conversations.get_conversation(pk, request.user)
        return Response({"success": True, "data": self.get_serializer(conversation).data})


class ConversationStatusView(generics.GenericAPIView):
    """PATCH archive/unarchive/block/unblock; the action comes from the URL."""
    serializer_class = ConversationSerializer
    status_action = None

    ACTIONS = {
        'archive': conversations.archive,
        'unarchive': conversations.unarchive,
        'block': conversations.block,
        'unblock': conversations.unblock,
    }

    def patch(self, request, pk):
        conversation = self.ACTIONS[self.status_action](pk, request.user)
        return Response({"success": True, "data": self.get_serializer(conversation).data})


# ========================================
# MESSAGES
# ========================================
class ConversationMessagesView(generics.GenericAPIView):
    serializer_class = MessageSerializer

    def get(self, request, pk):
        params = MessagePageSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        items, pagination = messages.page_messages(pk, request.user, **params.validated_data)

        return Response({
            "success": True,
            "conversation_id": pk,
            "data": self.get_serializer(items, many=True).data,
            "pagination": pagination,
        })

    def post(self, request, pk):
        payload = SendMessageSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        message = messages.send_message(
            pk,
            request.user,
            payload.validated_data['content'],
            client_token=payload.validated_data.get('client_token'),
        )

        return Response({
            "success": True,
            "data": self.get_serializer(message).data,
        }, status=status.HTTP_201_CREATED)


class MarkReadView(generics.GenericAPIView):
    def patch(self, request, pk):
        updated = messages.mark_read(pk, request.user)
        return Response({"success": True, "updated": updated})


class MessageDetailView(generics.GenericAPIView):
    def delete(self, request, pk):
        messages.soft_delete_message(pk, request.user)
        return Response({"success": True, "message": "Message deleted"})


class ReportMessageView(generics.GenericAPIView):
    serializer_class = ReportMessageSerializer

    def post(self, request, pk):
        payload = self.get_serializer(data=request.data)
        payload.is_valid(raise_exception=True)

        report, created = messages.report_message(pk, request.user, **payload.validated_data)

        return Response({
            "success": True,
            "data": MessageReportSerializer(report).data,
        }, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


# ========================================
# UNREAD COUNT
# ========================================
class UnreadCountView(generics.GenericAPIView):
    def get(self, request):
        return Response({"success": True, "data": unread.unread_counts(request.user)})


# ========================================
# ATTACHMENTS
# ========================================
class AttachmentUploadView(generics.GenericAPIView):
    serializer_class = AttachmentUploadSerializer
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        payload = self.get_serializer(data=request.data)
        payload.is_valid(raise_exception=True)

        attachment = upload_attachment(payload.validated_data['file'], request.user)
        return Response({"success": True, "data": attachment}, status=status.HTTP_201_CREATED)
