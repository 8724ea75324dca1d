"""
Stillbirth report endpoints.

Every endpoint is scoped to a location and covers that location and all
locations below it.  The raw records are loaded once per request and then
summarised in memory by :mod:`registry.services.reports`.
"""
from __future__ import annotations

import calendar
from datetime import date

from django.http import HttpResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from registry.permissions import HasLocationAccess, location_tree_for, require_permission
from registry.serializers.notification import ReportQuerySerializer
from registry.services.audit import log_action
from registry.services.notifications import records_for_location
from registry.services.reports import (
    PREVIEW_COLUMNS,
    get_month_dates,
    linelist_csv,
    monthly_summary,
    prepare_preview_data,
    process_raw_data,
)

REPORT_PERMISSIONS = [IsAuthenticated, require_permission('report.view'), HasLocationAccess]


def _report_range(request, *, default_month: bool = True) -> tuple[date | None, date | None]:
    """``startDate``/``endDate`` or ``month`` from the query; defaults to the current month."""
    q = ReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    if v.get('month'):
        try:
            month = get_month_dates(v['month'])
        except ValueError as e:
            raise ValidationError({'month': str(e)})
        return date.fromisoformat(month.start_date), date.fromisoformat(month.end_date)
    start, end = v.get('startDate'), v.get('endDate')
    if not (start or end) and default_month:
        today = timezone.localdate()
        start = today.replace(day=1)
        end = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    return start, end


@api_view(['GET'])
@permission_classes(REPORT_PERMISSIONS)
def stillbirth_records(request, location_id: int):
    start, end = _report_range(request, default_month=False)
    records = records_for_location(location_id, start, end, tree=location_tree_for(request))
    return Response(records)


@api_view(['GET'])
@permission_classes(REPORT_PERMISSIONS)
def stillbirth_summary(request, location_id: int):
    """Today's tiles, the tiles for the requested range and a month-by-month breakdown."""
    tree = location_tree_for(request)
    start, end = _report_range(request)
    today = timezone.localdate()
    records = records_for_location(location_id, start, end, tree=tree)
    today_records = records_for_location(location_id, today, today, tree=tree)
    return Response({
        'locationId': location_id,
        'startDate': start.isoformat() if start else None,
        'endDate': end.isoformat() if end else None,
        'today': process_raw_data(today_records),
        'range': process_raw_data(records),
        'monthly': monthly_summary(records),
    })


@api_view(['GET'])
@permission_classes(REPORT_PERMISSIONS)
def stillbirth_preview(request, location_id: int):
    start, end = _report_range(request)
    records = records_for_location(location_id, start, end, tree=location_tree_for(request))
    return Response({
        'locationId': location_id,
        'startDate': start.isoformat() if start else None,
        'endDate': end.isoformat() if end else None,
        'columns': [{'key': key, 'title': title} for key, title in PREVIEW_COLUMNS],
        'tiles': process_raw_data(records),
        'rows': prepare_preview_data(records),
    })


@api_view(['GET'])
@permission_classes(REPORT_PERMISSIONS)
def stillbirth_export(request, location_id: int):
    """CSV line list of the preview rows."""
    start, end = _report_range(request)
    records = records_for_location(location_id, start, end, tree=location_tree_for(request))
    rows = prepare_preview_data(records)
    log_action(user=request.user, action='report_export', object_type='location', object_id=location_id,
               detail={'rows': len(rows), 'startDate': str(start), 'endDate': str(end)})
    resp = HttpResponse(linelist_csv(rows), content_type='text/csv; charset=utf-8')
    resp['Content-Disposition'] = f'attachment; filename="stillbirth_linelist_{start}_to_{end}.csv"'
    return resp
