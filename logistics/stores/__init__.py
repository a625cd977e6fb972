from .base import EVENT_INSERT, EVENT_UPDATE, InventoryStore, TransferLedger
from .orm import ChangeFeed, DjangoInventoryStore, DjangoTransferLedger, transfer_feed

__all__ = [
    'EVENT_INSERT',
    'EVENT_UPDATE',
    'InventoryStore',
    'TransferLedger',
    'ChangeFeed',
    'DjangoInventoryStore',
    'DjangoTransferLedger',
    'transfer_feed',
]
