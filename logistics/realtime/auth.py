"""
Token authentication for websocket connections.

Browsers cannot set an ``Authorization`` header on a websocket
handshake, so the DRF token travels as ``?token=<key>``.  The resolved
user lands in ``scope["user"]`` (``AnonymousUser`` when missing or
invalid); consumers decide what to do with anonymous connections.
"""
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser
from rest_framework.authtoken.models import Token


@database_sync_to_async
def get_user_for_token(key):
    token = Token.objects.select_related("user").filter(key=key).first()
    if token is None or not token.user.is_active:
        return AnonymousUser()
    return token.user


class TokenAuthMiddleware(BaseMiddleware):

    async def __call__(self, scope, receive, send):
        params = parse_qs(scope.get("query_string", b"").decode())
        key = (params.get("token") or [None])[0]
        scope["user"] = await get_user_for_token(key) if key else AnonymousUser()
        return await super().__call__(scope, receive, send)
