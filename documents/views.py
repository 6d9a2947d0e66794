"""Personal document locker API."""

from rest_framework import mixins, viewsets
from rest_framework.permissions import IsAuthenticated

from .models import UserDocument
from .serializers import UserDocumentSerializer


class UserDocumentViewSet(mixins.ListModelMixin,
                          mixins.CreateModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.DestroyModelMixin,
                          viewsets.GenericViewSet):
    """Upload, list and delete the signed-in user's own documents."""

    permission_classes = [IsAuthenticated]
    serializer_class = UserDocumentSerializer

    def get_queryset(self):
        return UserDocument.objects.filter(user=self.request.user).order_by('-created_at')

    def perform_create(self, serializer):
        serializer.save(user=self.request.user)
