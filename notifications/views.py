"""Notification feed API for the signed-in user."""

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .serializers import NotificationSerializer, PermissionSerializer
from .store import NotificationFeed


class NotificationViewSet(viewsets.ViewSet):
    """
    - list: notifications newest first, with the unread count
    - read: mark one notification read
    - read-all: mark everything read
    - clear: drop read notifications (unread ones stay)
    - permission: record whether platform notifications are allowed
    """

    permission_classes = [IsAuthenticated]

    def _feed(self, request):
        return NotificationFeed(request.user.pk)

    def _payload(self, feed):
        items = feed.load()
        return {
            'unread_count': feed.unread_count(items),
            'permission': feed.permission_granted(),
            'notifications': NotificationSerializer(items, many=True).data,
        }

    def list(self, request):
        return Response(self._payload(self._feed(request)))

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        feed = self._feed(request)
        if not feed.mark_as_read(pk):
            return Response({'detail': 'Notification not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(self._payload(feed))

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        feed = self._feed(request)
        feed.mark_all_as_read()
        return Response(self._payload(feed))

    @action(detail=False, methods=['post'])
    def clear(self, request):
        feed = self._feed(request)
        removed = feed.clear()
        payload = self._payload(feed)
        payload['removed'] = removed
        return Response(payload)

    @action(detail=False, methods=['get', 'post'])
    def permission(self, request):
        feed = self._feed(request)
        if request.method == 'POST':
            serializer = PermissionSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            feed.set_permission(serializer.validated_data['granted'])
        return Response({'granted': feed.permission_granted()})
