from typing import Dict

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Q, Sum

from logistics.formatting import format_task
from logistics.models import InventoryRecord, TransferTask
from logistics.stores.orm import DASHBOARD_CACHE_KEY, DjangoTransferLedger


def compute_stats() -> Dict:
    threshold = settings.SUPPLY_LOW_STOCK_THRESHOLD
    agg = InventoryRecord.objects.aggregate(
        total=Sum('quantity'),
        low=Count('id', filter=Q(quantity__lt=threshold)),
    )
    total_stock = agg['total'] or 0
    by_status = {
        row['status']: row['n']
        for row in TransferTask.objects.values('status').annotate(n=Count('id')).order_by()
    }
    recent = DjangoTransferLedger().recent(settings.SUPPLY_RECENT_ACTIVITY_LIMIT)
    return {
        'totalStock': total_stock,
        'lowStockCount': agg['low'] or 0,
        'lowStockThreshold': threshold,
        'totalValue': total_stock * settings.SUPPLY_UNIT_VALUE,
        'activeTasks': {
            'pending': by_status.get(TransferTask.STATUS_PENDING, 0),
            'inTransit': by_status.get(TransferTask.STATUS_IN_TRANSIT, 0),
        },
        'deliveredCount': by_status.get(TransferTask.STATUS_DELIVERED, 0),
        'recentActivity': [format_task(t) for t in recent],
    }


def dashboard_stats() -> Dict:
    """Cached stats; the ledger change feed drops the cache on every transfer change."""
    cached = cache.get(DASHBOARD_CACHE_KEY)
    if cached:
        return cached
    stats = compute_stats()
    cache.set(DASHBOARD_CACHE_KEY, stats, settings.SUPPLY_DASHBOARD_CACHE_SECONDS)
    return stats


def invalidate_stats() -> None:
    cache.delete(DASHBOARD_CACHE_KEY)
