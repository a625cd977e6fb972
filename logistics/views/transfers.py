"""
Transfer endpoints.

Nurses locate a source and request a transfer; porters accept and
complete.  Losing a race on accept/complete is an ordinary outcome and
comes back as a 409 with code ``invalid_transition``.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..exceptions import TaskNotFound
from ..formatting import format_task, format_transition
from ..models import TransferTask
from ..permissions import IsNurseRole, IsPorterRole
from ..serializers.transfers import LocateSerializer, RestockRequestSerializer
from ..services import transfers as transfer_service
from ..services.allocation import locate_source
from .common import actor_for, inventory_store, location_or_404, transfer_ledger


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def locate(request):
    """Dry run: where would this request be served from?"""
    s = LocateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    location_id = vd.get('locationId') or request.user.location_id
    match = locate_source(vd['drugName'], vd['qty'], location_id, inventory=inventory_store())
    return Response({'ok': True, 'match': match.as_dict()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsNurseRole])
def request_transfer(request):
    s = RestockRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    to_location_id = vd.get('toLocationId')
    if to_location_id is not None:
        location_or_404(to_location_id)
    match, task = transfer_service.request_restock(
        vd['drugName'], vd['qty'], actor_for(request),
        ledger=transfer_ledger(), inventory=inventory_store(), to_location_id=to_location_id,
    )
    return Response({'ok': True, 'match': match.as_dict(), 'task': format_task(task)}, status=201)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def active_transfers(request):
    """Pending and in-transit tasks, newest first (the porter feed)."""
    tasks = transfer_ledger().scan_by_status(TransferTask.ACTIVE_STATUSES)
    return Response({'ok': True, 'tasks': [format_task(t) for t in tasks]})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transfer_detail(request, task_id: int):
    task = transfer_ledger().get(task_id)
    if task is None:
        raise TaskNotFound(task_id)
    history = task.transitions.select_related('operator').order_by('timestamp', 'id')
    data = format_task(task)
    data['transitionHistory'] = [format_transition(t) for t in history]
    return Response({'ok': True, 'task': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPorterRole])
def accept_transfer(request, task_id: int):
    task = transfer_service.accept_transfer(task_id, actor_for(request), ledger=transfer_ledger())
    return Response({'ok': True, 'task': format_task(task)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsPorterRole])
def complete_transfer(request, task_id: int):
    task = transfer_service.complete_transfer(
        task_id, actor_for(request), ledger=transfer_ledger(), inventory=inventory_store(),
    )
    return Response({'ok': True, 'task': format_task(task)})
