import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

TRANSFERS_GROUP = "transfers"


def broadcast_transfer_event(event_type: str, payload: dict) -> None:
    """Relay a ledger change to every connected websocket client."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    # event: {"type": "transfer.event", "event": "insert"|"update", "task": {...}}
    async_to_sync(channel_layer.group_send)(
        TRANSFERS_GROUP, {"type": "transfer.event", "event": event_type, "task": payload}
    )
    logger.debug("broadcast %s for transfer %s", event_type, payload.get("id"))
