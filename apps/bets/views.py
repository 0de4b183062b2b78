from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.core.exceptions import ServiceError
from apps.core.responses import service_error_response

from .models import Bet
from .permissions import IsCoupleMember
from .serializers import (
    BetCreateSerializer,
    BetFilterSerializer,
    BetHistorySerializer,
    BetSerializer,
    ConcludeBetSerializer,
    CoupleStatsSerializer,
    ErrorSerializer,
)
from .services import (
    approve_bet,
    conclude_bet,
    create_bet,
    decline_bet,
    delete_bet,
    get_bet_history,
    get_couple_bets,
    get_couple_stats,
)


class BetViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    """
    ViewSet for the bets of the current user's couple.

    All lifecycle rules are handled by services.
    Views are thin HTTP handlers only.

    list: Get the couple's bets (filterable by status)
    create: Create a bet (pending or active, per settings)
    retrieve: Get a specific bet
    destroy: Delete an open bet (creator only)
    """

    queryset = Bet.objects.none()
    serializer_class = BetSerializer
    permission_classes = [IsAuthenticated, IsCoupleMember]
    lookup_value_regex = '[0-9a-fA-F-]{36}'

    def get_queryset(self):
        """Return only the bets of the user's couple."""
        if getattr(self, 'swagger_fake_view', False):
            return Bet.objects.none()

        filter_serializer = BetFilterSerializer(data=self.request.query_params)
        filter_serializer.is_valid(raise_exception=True)

        return get_couple_bets(
            user=self.request.user,
            status=filter_serializer.validated_data.get('status')
        )

    @extend_schema(
        parameters=[
            OpenApiParameter('status', OpenApiTypes.STR, description='pending, active or concluded'),
        ],
        tags=['bets'],
    )
    def list(self, request, *args, **kwargs):
        try:
            return super().list(request, *args, **kwargs)
        except ServiceError as e:
            return service_error_response(e)

    @extend_schema(
        request=BetCreateSerializer,
        responses={201: BetSerializer, 400: ErrorSerializer, 403: ErrorSerializer},
        tags=['bets'],
    )
    def create(self, request, *args, **kwargs):
        """Create a new bet."""
        serializer = BetCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bet = create_bet(user=request.user, **serializer.validated_data)
        except ServiceError as e:
            return service_error_response(e)

        return Response(BetSerializer(bet).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        responses={204: None, 403: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
        tags=['bets'],
    )
    def destroy(self, request, pk=None):
        """Delete a pending or active bet."""
        try:
            delete_bet(bet_id=pk, user=request.user)
        except ServiceError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=None,
        responses={200: BetSerializer, 403: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
        tags=['bets'],
    )
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """
        Approve a pending bet.

        POST /api/bets/{id}/approve/
        """
        try:
            bet = approve_bet(bet_id=pk, user=request.user)
        except ServiceError as e:
            return service_error_response(e)
        return Response(BetSerializer(bet).data)

    @extend_schema(
        request=None,
        responses={204: None, 403: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
        tags=['bets'],
    )
    @action(detail=True, methods=['post'])
    def decline(self, request, pk=None):
        """
        Decline (and delete) a pending bet.

        POST /api/bets/{id}/decline/
        """
        try:
            decline_bet(bet_id=pk, user=request.user)
        except ServiceError as e:
            return service_error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        request=ConcludeBetSerializer,
        responses={200: BetSerializer, 400: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
        tags=['bets'],
    )
    @action(detail=True, methods=['post'])
    def conclude(self, request, pk=None):
        """
        Conclude an active bet.

        POST /api/bets/{id}/conclude/
        Body: {"winner_option": "a"}
        """
        serializer = ConcludeBetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            bet = conclude_bet(
                bet_id=pk,
                user=request.user,
                winner_option=serializer.validated_data['winner_option']
            )
        except ServiceError as e:
            return service_error_response(e)
        return Response(BetSerializer(bet).data)

    @extend_schema(responses={200: CoupleStatsSerializer}, tags=['bets'])
    @action(detail=False, methods=['get'])
    def stats(self, request):
        """
        Win/loss statistics of the couple.

        GET /api/bets/stats/
        """
        try:
            data = get_couple_stats(couple_id=request.user.couple_id)
        except ServiceError as e:
            return service_error_response(e)
        return Response(CoupleStatsSerializer(data).data)

    @extend_schema(responses={200: BetHistorySerializer(many=True)}, tags=['bets'])
    @action(detail=False, methods=['get'])
    def history(self, request):
        """
        Concluded bets with their winners.

        GET /api/bets/history/
        """
        try:
            data = get_bet_history(couple_id=request.user.couple_id)
        except ServiceError as e:
            return service_error_response(e)
        return Response(BetHistorySerializer(data, many=True).data)
