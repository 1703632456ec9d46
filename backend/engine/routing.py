from django.urls import path

from .consumers import GameConsumer

websocket_urlpatterns = [
    path("ws/play/", GameConsumer.as_asgi()),
]
