from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from journeys.services.candidate_search import find_by_do, find_candidates
from journeys.services.selector import JourneyError, select
from stations.services.station_rules import DIRECTIONS, StationRuleResolver

from .models import LPODocument
from .serializers import (
    BatchLookupSerializer, CancelTruckSerializer, DuplicateCheckSerializer, LineItemSerializer,
    LPODocumentSerializer, ResolvedJourneySerializer, SubmitOrderSerializer,
)
from .services.duplicate_guard import check_duplicate
from .services.lookups import LookupArena, lookup_rows
from .services.orders import (
    EntryNotFoundError, LPOError, OrderBlockedError, cancel_truck_entry, find_at_checkpoint, submit_order,
)


def _direction(request):
    direction = (request.query_params.get('direction') or 'going').strip().lower()
    return direction if direction in DIRECTIONS else None


def _journey_selection(value):
    if value in (None, ''):
        return None
    if value == 'active':
        return value
    try:
        return int(value)
    except ValueError:
        return value


def _lookup_response(request, candidates):
    direction = _direction(request)
    if direction is None:
        return Response({"error": "direction must be 'going' or 'returning'"}, status=status.HTTP_400_BAD_REQUEST)

    station = request.query_params.get('station') or None
    try:
        resolved = select(
            candidates,
            _journey_selection(request.query_params.get('journey')),
            direction,
            station,
            StationRuleResolver() if station else None,
        )
    except JourneyError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    data = ResolvedJourneySerializer(resolved).data
    # Echo the row identity so callers can drop answers for rows that have moved on
    for key in ('row_id', 'correlation_id'):
        if request.query_params.get(key):
            data[key] = request.query_params[key]
    return Response(data, status=status.HTTP_200_OK)


class TruckJourneyView(APIView):
    def get(self, request, truck_no):
        return _lookup_response(request, find_candidates(truck_no))


class DeliveryOrderJourneyView(APIView):
    def get(self, request, do_no):
        return _lookup_response(request, find_by_do(do_no))


class CheckDuplicateView(APIView):
    def get(self, request):
        params = request.query_params
        truck_no = params.get('truck_no')
        station = params.get('station')
        if not truck_no or not station:
            return Response({"error": "truck_no and station are required"}, status=status.HTTP_400_BAD_REQUEST)

        try:
            liters = int(params['liters']) if params.get('liters') else None
            exclude = int(params['exclude']) if params.get('exclude') else None
        except ValueError:
            return Response({"error": "liters and exclude must be whole numbers"}, status=status.HTTP_400_BAD_REQUEST)

        result = check_duplicate(truck_no, station, liters, params.get('do_no') or None, exclude)
        return Response(DuplicateCheckSerializer(result).data, status=status.HTTP_200_OK)


class LPODocumentCreateView(APIView):
    def post(self, request):
        ser = SubmitOrderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            result = submit_order(
                station=ser.validated_data['station'],
                lines=ser.order_lines(),
                order_date=ser.validated_data.get('date'),
                order_of=ser.validated_data.get('order_of', ''),
                lpo_no=ser.validated_data.get('lpo_no'),
                cancellations=ser.cancellation_requests(),
                user=request.user,
            )
        except OrderBlockedError as e:
            return Response(
                {"error": str(e), "issues": [
                    {"truck_no": i.truck_no, "kind": i.kind, "row": i.row, "message": i.message} for i in e.issues
                ]},
                status=status.HTTP_409_CONFLICT,
            )
        except LPOError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response({
            "document": LPODocumentSerializer(result.document).data,
            "notices": result.notices,
            "cancellations": [
                {"document_id": c.document_id, "truck_no": c.truck_no, "ok": c.ok, "message": c.message}
                for c in result.cancellations
            ],
        }, status=status.HTTP_201_CREATED)


class CancelTruckView(APIView):
    def post(self, request, id):
        get_object_or_404(LPODocument, pk=id, is_deleted=False)
        ser = CancelTruckSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            document = cancel_truck_entry(
                id,
                ser.validated_data['truck_no'],
                ser.validated_data['cancellation_point'],
                ser.validated_data.get('reason'),
            )
        except EntryNotFoundError as e:
            return Response({"error": str(e)}, status=status.HTTP_404_NOT_FOUND)
        except LPOError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(LPODocumentSerializer(document).data, status=status.HTTP_200_OK)


class FindAtCheckpointView(APIView):
    def get(self, request):
        truck_no = request.query_params.get('truck_no')
        if not truck_no:
            return Response({"error": "truck_no is required"}, status=status.HTTP_400_BAD_REQUEST)

        matches = find_at_checkpoint(truck_no, request.query_params.get('station') or None)
        data = []
        for match in matches:
            doc = LPODocumentSerializer(match.document).data
            entry_ids = {e.id for e in match.entries}
            doc['entries'] = [e for e in doc['entries'] if e['id'] in entry_ids]
            data.append(doc)
        return Response(data, status=status.HTTP_200_OK)


class BatchLookupView(APIView):
    """Resolve several pasted trucks at once; each answer is keyed to its row."""

    def post(self, request):
        ser = BatchLookupSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        arena = LookupArena()
        for row in ser.validated_data['rows']:
            try:
                arena.add_row(row['row_id'], truck_no=row['truck_no'], do_number=row['do_number'])
            except ValueError as e:
                return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        lines = lookup_rows(arena, ser.validated_data['station'], ser.validated_data['direction'])
        return Response(LineItemSerializer(lines, many=True).data, status=status.HTTP_200_OK)
