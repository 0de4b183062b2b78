from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema

from apps.core.exceptions import ServiceError, ValidationError
from apps.core.responses import service_error_response
from apps.core.validation import validate_couple_code

from .serializers import (
    CanJoinResponseSerializer,
    CoupleOverviewSerializer,
    CreateCoupleResponseSerializer,
    CreateCoupleSerializer,
    ErrorSerializer,
    JoinCoupleResponseSerializer,
    JoinCoupleSerializer,
    RepairResponseSerializer,
    UnlinkResponseSerializer,
)
from .services import (
    can_join_couple,
    can_rejoin_couple,
    create_couple as create_couple_service,
    get_couple_overview,
    join_couple as join_couple_service,
    repair_couple_pairing,
    unlink,
)


@extend_schema(
    request=CreateCoupleSerializer,
    responses={
        201: CreateCoupleResponseSerializer,
        400: ErrorSerializer,
        503: ErrorSerializer,
    },
    description="Create a couple and its first member. Returns the couple code and the auth token.",
    tags=['couples'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def create_couple(request):
    """Create a new couple - thin HTTP handler."""
    serializer = CreateCoupleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        couple, user, token = create_couple_service(name=serializer.validated_data['name'])
    except ServiceError as e:
        return service_error_response(e)

    output = CreateCoupleResponseSerializer({'couple': couple, 'user': user, 'token': token})
    return Response(output.data, status=status.HTTP_201_CREATED)


@extend_schema(
    request=JoinCoupleSerializer,
    responses={
        200: JoinCoupleResponseSerializer,
        400: ErrorSerializer,
        404: ErrorSerializer,
    },
    description=(
        "Join a couple with its code. A request carrying the token of an "
        "unlinked member rejoins that member instead of creating a new one."
    ),
    tags=['couples'],
)
@api_view(['POST'])
@permission_classes([AllowAny])
def join_couple(request):
    """Join or rejoin a couple."""
    serializer = JoinCoupleSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    token = request.auth if request.user.is_authenticated else None

    try:
        user, partner, token = join_couple_service(
            couple_code=serializer.validated_data['couple_code'],
            name=serializer.validated_data.get('name'),
            token=token,
        )
    except ServiceError as e:
        return service_error_response(e)

    output = JoinCoupleResponseSerializer({'user': user, 'partner': partner, 'token': token})
    return Response(output.data)


@extend_schema(
    responses={200: CanJoinResponseSerializer},
    description="Check whether a code can be joined, or rejoined by the requesting member.",
    tags=['couples'],
)
@api_view(['GET'])
@permission_classes([AllowAny])
def can_join(request, couple_code):
    try:
        code = validate_couple_code(couple_code)
    except ValidationError:
        return Response({'can_join': False, 'can_rejoin': False})

    token = request.auth if request.user.is_authenticated else None
    return Response({
        'can_join': can_join_couple(code),
        'can_rejoin': can_rejoin_couple(code, token),
    })


@extend_schema(
    responses={200: CoupleOverviewSerializer},
    description="Current couple, user and partner. Repairs a half-completed pairing first.",
    tags=['couples'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_couple(request):
    try:
        overview = get_couple_overview(user=request.user)
    except ServiceError as e:
        return service_error_response(e)

    return Response(CoupleOverviewSerializer(overview).data)


@extend_schema(
    request=None,
    responses={200: UnlinkResponseSerializer, 404: ErrorSerializer},
    description="Unlink from the partner. Calling it again is a no-op.",
    tags=['couples'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def unlink_partner(request):
    try:
        partner = unlink(user_id=request.user.id)
    except ServiceError as e:
        return service_error_response(e)

    return Response({
        'unlinked': partner is not None,
        'former_partner_id': partner.id if partner else None,
    })


@extend_schema(
    request=None,
    responses={200: RepairResponseSerializer},
    description="Re-symmetrize partner links of the current couple.",
    tags=['couples'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def repair_pairing(request):
    try:
        repaired = repair_couple_pairing(couple_id=request.user.couple_id)
    except ServiceError as e:
        return service_error_response(e)

    return Response({'repaired': repaired})
