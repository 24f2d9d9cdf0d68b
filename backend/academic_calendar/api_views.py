from __future__ import annotations

from datetime import date
from typing import Any, Optional

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .services import semester as semester_service


def _parse_iso_date(v: Any) -> Optional[date]:
    if v in (None, ''):
        return None
    try:
        return date.fromisoformat(str(v).strip())
    except ValueError:
        return None


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def semester_preview(request):
    """Preview the semester window for a batch name without touching any record.

    Query params: `batch` (required, e.g. '2023-2027 A'), `date` (optional
    yyyy-mm-dd, defaults to today), `semester` (optional, window for that
    semester instead of the current one).
    """
    batch_name = str(request.query_params.get('batch') or '').strip()
    if not batch_name:
        return Response({'detail': 'batch is required.'}, status=status.HTTP_400_BAD_REQUEST)

    raw_date = request.query_params.get('date')
    as_of = _parse_iso_date(raw_date)
    if raw_date and as_of is None:
        return Response({'detail': 'date must be yyyy-mm-dd.'}, status=status.HTTP_400_BAD_REQUEST)

    raw_semester = request.query_params.get('semester')
    if raw_semester:
        try:
            sem = semester_service.clamp_semester(int(raw_semester))
        except ValueError:
            return Response({'detail': 'semester must be a number.'}, status=status.HTTP_400_BAD_REQUEST)
        from_date, to_date = semester_service.semester_date_range(batch_name, sem, as_of)
        window = semester_service.SemesterWindow(semester=sem, from_date=from_date, to_date=to_date)
    else:
        window = semester_service.semester_window(batch_name, as_of)

    parsed = semester_service.parse_batch_name(batch_name)
    return Response({
        'batch': batch_name,
        'start_year': parsed.start_year if parsed else None,
        'end_year': parsed.end_year if parsed else None,
        'section': parsed.section if parsed else '',
        **window.as_dict(),
    })
