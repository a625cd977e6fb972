from django.urls import path

from .consumers import TransferFeedConsumer

websocket_urlpatterns = [
    path("ws/transfers/", TransferFeedConsumer.as_asgi()),
]
