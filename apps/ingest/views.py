"""API views for the processed message history."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from drf_spectacular.utils import OpenApiParameter, extend_schema  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from shared.domain.exceptions import InvalidArgument

from .filters import ProcessedMessageFilterSet
from .models import ProcessedMessage
from .serializers import ProcessedMessageSerializer, ProcessedMessageStatsSerializer
from .services import get_stats


class ProcessedMessageViewSet(viewsets.ReadOnlyModelViewSet):
    """Processing history, newest first."""

    queryset = ProcessedMessage.objects.all()
    serializer_class = ProcessedMessageSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ProcessedMessageFilterSet

    @extend_schema(
        parameters=[OpenApiParameter("source_type", str, required=False)],
        responses=ProcessedMessageStatsSerializer,
    )
    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        try:
            stats = get_stats(request.query_params.get("source_type") or None)
        except InvalidArgument as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ProcessedMessageStatsSerializer(stats).data)
