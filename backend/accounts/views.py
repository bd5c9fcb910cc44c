import logging

from django.contrib.auth import authenticate
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status, viewsets
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .models import CustomUser
from .permissions import IsUserManager, auth_context
from .policy import AuthContext
from .serializers import UserSerializer

logger = logging.getLogger(__name__)


def _error(detail: str, status_code: int):
    """Consistent error payload shape across API: {'detail': ...}."""
    return Response({'detail': detail}, status=status_code)


def _session_payload(user, token):
    ctx = AuthContext.from_user(user)
    return {
        'token': token.key,
        'role': user.role,
        'username': user.username,
        'name': user.display_name,
        'tabs': ctx.tabs,
        'capabilities': sorted(ctx.capabilities),
    }


@csrf_exempt
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Login endpoint that returns a token, the user's role and what that role may see
    """
    username = request.data.get('username')
    password = request.data.get('password')

    if not username or not password:
        return _error('Username and password required', 400)

    user = authenticate(username=username, password=password)
    if not user:
        logger.info(f"Failed login for '{username}'")
        return _error('Invalid credentials', 401)
    if user.status != 'active':
        return _error('Account is inactive', 403)

    token, created = Token.objects.get_or_create(user=user)
    logger.info(f"User {user.username} logged in as {user.role}")
    return Response(_session_payload(user, token))


@api_view(['POST'])
@permission_classes([IsUserManager])
def register_view(request):
    """
    Create a system user. Only administrators may create accounts.
    """
    serializer = UserSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    user = serializer.save()
    token = Token.objects.create(user=user)
    logger.info(f"{request.user.username} created user {user.username} ({user.role})")
    return Response(_session_payload(user, token), status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    ctx = auth_context(request)
    return Response({
        'id': request.user.pk,
        'username': request.user.username,
        'name': ctx.name,
        'role': ctx.role,
        'status': request.user.status,
        'tabs': ctx.tabs,
        'capabilities': sorted(ctx.capabilities),
    })


class UserViewSet(viewsets.ModelViewSet):
    queryset = CustomUser.objects.all().order_by('username')
    serializer_class = UserSerializer
    permission_classes = [IsUserManager]

    def perform_destroy(self, instance):
        # accounts are deactivated, never deleted; quotations and invoices point at them
        instance.status = 'inactive'
        instance.is_active = False
        instance.save(update_fields=['status', 'is_active'])
        logger.info(f"{self.request.user.username} deactivated user {instance.username}")
