"""
Authentication views.

Staff sign in with e-mail and password and receive a JWT pair.  The
response also carries the role, home location and the client screens the
role may open so the front-end can build its navigation without a second
round trip.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from registry.permissions import allowed_screens
from registry.serializers.auth import LoginSerializer
from registry.services.audit import client_ip, log_action

logger = logging.getLogger(__name__)


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


def user_payload(user) -> dict:
    location = user.location
    return {
        'id': user.id,
        'email': user.email,
        'name': user.name or user.get_full_name() or user.email,
        'role': user.role_name,
        'location': {'id': location.id, 'name': location.name, 'type': location.type} if location else None,
        'screens': allowed_screens(user.role_name),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    ip = client_ip(request)

    user = authenticate(request, username=email, password=s.validated_data['password'])
    if not user:
        logger.warning("failed login for %s from %s", email, ip)
        log_action(user=None, action='login', object_type='user', detail={'result': 'fail', 'email': email, 'ip': ip})
        return Response({'ok': False, 'error': {'code': 'invalid_credentials', 'message': 'invalid email or password'}},
                        status=401)

    log_action(user=user, action='login', object_type='user', object_id=user.id, detail={'result': 'ok', 'ip': ip})
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role_name,
        'user': user_payload(user),
    })


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    resp = TokenRefreshView.as_view()(request._request)
    if isinstance(resp, Response) and resp.status_code == 200:
        data = dict(resp.data)
        data['jwt_access'] = data.pop('access')
        if 'refresh' in data:
            data['jwt_refresh'] = data.pop('refresh')
        return Response(data, status=resp.status_code)
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or every outstanding token of the user."""
    refresh = request.data.get('refresh')
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as e:
            return Response({'ok': False, 'error': {'code': 'invalid_token', 'message': str(e)}}, status=400)
        count = 1
    else:
        count = 0
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'blacklisted': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response(user_payload(request.user))
