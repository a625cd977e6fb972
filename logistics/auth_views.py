"""
Login endpoint.

Issues a DRF auth token for username/password credentials and returns
the caller's role and home location so the front-end can pick the
nurse, porter or admin screens.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .formatting import format_location
from .serializers.auth import LoginSerializer
from .services.audit import log_action

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    password = s.validated_data['password']
    ip = request.META.get('REMOTE_ADDR')

    user = authenticate(request, username=username, password=password)
    if not user:
        logger.info('failed login for %s from %s', username, ip)
        log_action(user_id=None, action='login', object_type='user',
                   detail={'result': 'fail', 'username': username, 'ip': ip})
        return Response({'ok': False, 'error': {'code': 'invalid_credentials',
                                                'message': 'Invalid username or password'}}, status=400)

    log_action(user_id=user.id, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    token, _ = Token.objects.get_or_create(user=user)
    return Response({
        'ok': True,
        'token': token.key,
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'name': user.get_full_name() or user.username,
            'role': user.role,
        },
        'location': format_location(user.location) if user.location_id else None,
    })

# ScopedRateThrottle reads throttle_scope from the view class api_view generated
login_view.cls.throttle_scope = 'login'
