from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.core.exceptions import ServiceError
from apps.core.responses import service_error_response

from .serializers import (
    CurrentUserSerializer,
    ErrorResponseSerializer,
    MessageResponseSerializer,
    UpdateNameSerializer,
)
from .services import logout as logout_service, update_user_name


@extend_schema(
    methods=['GET'],
    responses={200: CurrentUserSerializer},
    description="Get the current member resolved from the auth token.",
    tags=['auth'],
)
@extend_schema(
    methods=['PATCH'],
    request=UpdateNameSerializer,
    responses={
        200: CurrentUserSerializer,
        400: ErrorResponseSerializer,
    },
    description="Rename the current member.",
    tags=['auth'],
)
@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def current_user(request):
    """Get or rename the current member."""
    if request.method == 'GET':
        return Response(CurrentUserSerializer(request.user).data)

    serializer = UpdateNameSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        user = update_user_name(
            user_id=request.user.id,
            name=serializer.validated_data['name']
        )
    except ServiceError as e:
        return service_error_response(e)

    return Response(CurrentUserSerializer(user).data)


@extend_schema(
    request=None,
    responses={200: MessageResponseSerializer},
    description="Invalidate the current auth token.",
    tags=['auth'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Logout user by discarding its token."""
    try:
        logout_service(user=request.user)
    except ServiceError as e:
        return service_error_response(e)

    return Response(
        {'message': 'Successfully logged out'},
        status=status.HTTP_200_OK
    )
