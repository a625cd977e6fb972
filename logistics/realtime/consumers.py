"""
Live transfer feed.

On connect the client gets a ``snapshot`` of the active tasks, then one
``transfer.event`` message per ledger change.  Events may repeat or
arrive out of order; clients reconcile by task id the way
``logistics.services.live_view.ActiveTaskList`` does.
"""
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer

from logistics.formatting import format_task
from logistics.models import TransferTask
from logistics.stores.orm import DjangoTransferLedger

from .broadcast import TRANSFERS_GROUP

logger = logging.getLogger(__name__)


@database_sync_to_async
def active_snapshot():
    tasks = DjangoTransferLedger().scan_by_status(TransferTask.ACTIVE_STATUSES)
    return [format_task(t) for t in tasks]


class TransferFeedConsumer(AsyncWebsocketConsumer):
    GROUP = TRANSFERS_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close(code=4003)
            return
        # join before the snapshot so no change can fall between the two
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        self.joined = True
        await self.accept()
        tasks = await active_snapshot()
        await self.send(json.dumps({"type": "snapshot", "tasks": tasks}))
        logger.debug("user %s subscribed to transfer feed", user.pk)

    async def disconnect(self, close_code):
        if getattr(self, "joined", False):
            await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def transfer_event(self, event):
        # event: {"type": "transfer.event", "event": "insert"|"update", "task": {...}}
        await self.send(json.dumps(event))
