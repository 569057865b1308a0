from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from . import facilities
from .auth_utils import authenticate_request, require_role
from .constants import FACILITY_ROLES, FACILITY_STATUSES, ROLE_ADMIN
from .db import get_db
from .serializers import FacilityRejectionSerializer
from .views import serialize_account


class AdminDashboardView(APIView):
    @authenticate_request
    @require_role(ROLE_ADMIN)
    def get(self, request):
        return Response({"success": True, "stats": facilities.admin_overview(get_db())})


class AdminFacilityListView(APIView):
    @authenticate_request
    @require_role(ROLE_ADMIN)
    def get(self, request):
        facility_status = request.query_params.get('status') or None
        if facility_status and facility_status not in FACILITY_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(FACILITY_STATUSES)}")
        role = request.query_params.get('role') or None
        if role and role not in FACILITY_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(FACILITY_ROLES)}")

        found = facilities.list_facilities(get_db(), status=facility_status, role=role)
        return Response({"success": True, "facilities": [serialize_account(f) for f in found]})


class AdminDonorListView(APIView):
    @authenticate_request
    @require_role(ROLE_ADMIN)
    def get(self, request):
        found = facilities.list_donors(get_db())
        return Response({"success": True, "donors": [serialize_account(d) for d in found]})


class FacilityApproveView(APIView):
    @authenticate_request
    @require_role(ROLE_ADMIN)
    def put(self, request, facility_id):
        facility = facilities.approve_facility(get_db(), request.user_id, facility_id)
        return Response({
            "success": True,
            "message": "Facility approved",
            "facility": serialize_account(facility),
        })


class FacilityRejectView(APIView):
    @authenticate_request
    @require_role(ROLE_ADMIN)
    def put(self, request, facility_id):
        serializer = FacilityRejectionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        facility = facilities.reject_facility(
            get_db(), request.user_id, facility_id, serializer.validated_data['rejectionReason'],
        )
        return Response({
            "success": True,
            "message": "Facility rejected and status updated",
            "facility": serialize_account(facility),
        })
