from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import blood_requests
from .auth_utils import authenticate_request, require_role
from .constants import (
    EVENT_REQUEST_APPROVED, EVENT_STOCK_UPDATE, REQUEST_ACCEPTED, REQUEST_STATUSES, ROLE_HOSPITAL, ROLE_LAB,
)
from .db import get_db
from .history import record_event
from .serializers import BloodRequestCreateSerializer, ProcessRequestSerializer
from .utils import serialize_doc


def status_filter(params):
    request_status = params.get('status') or None
    if request_status and request_status not in REQUEST_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(REQUEST_STATUSES)}")
    return request_status


class HospitalBloodRequestView(APIView):
    @authenticate_request
    @require_role(ROLE_HOSPITAL)
    def post(self, request):
        db = get_db()
        serializer = BloodRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        blood_request, lab = blood_requests.create_request(
            db, request.user_id, data['labId'], data['bloodType'], data['units'], data.get('notes'),
        )
        record_event(
            db, request.user_id, EVENT_STOCK_UPDATE,
            f"Requested {data['units']} units of {data['bloodType']} from {lab.get('name')}",
            blood_request['_id'],
        )
        return Response({
            "success": True,
            "message": "Blood request sent to lab successfully",
            "request": serialize_doc(blood_request),
        }, status=status.HTTP_201_CREATED)


class HospitalRequestListView(APIView):
    @authenticate_request
    @require_role(ROLE_HOSPITAL)
    def get(self, request):
        found = blood_requests.list_requests(
            get_db(), hospital_id=request.user_id, status=status_filter(request.query_params),
        )
        return Response({"success": True, "requests": [serialize_doc(r) for r in found]})


class LabRequestListView(APIView):
    @authenticate_request
    @require_role(ROLE_LAB)
    def get(self, request):
        found = blood_requests.list_requests(
            get_db(), lab_id=request.user_id, status=status_filter(request.query_params),
        )
        return Response({"success": True, "requests": [serialize_doc(r) for r in found]})


class LabRequestProcessView(APIView):
    @authenticate_request
    @require_role(ROLE_LAB)
    def put(self, request, request_id):
        db = get_db()
        serializer = ProcessRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        action = serializer.validated_data['action']

        processed = blood_requests.process_request(db, request.user_id, request_id, action)

        summary = f"{processed['units']} units of {processed['bloodType']}"
        if processed['status'] == REQUEST_ACCEPTED:
            record_event(db, request.user_id, EVENT_REQUEST_APPROVED, f"Accepted request for {summary}", processed['_id'])
        else:
            record_event(db, request.user_id, EVENT_STOCK_UPDATE, f"Rejected request for {summary}", processed['_id'])

        return Response({
            "success": True,
            "message": f"Request {processed['status']} successfully",
            "request": serialize_doc(processed),
        })
