from rest_framework.response import Response
from rest_framework.views import APIView

from . import blood_requests, inventory
from .auth_utils import authenticate_request, require_role
from .constants import CAMP_UPCOMING, FACILITY_ROLES, REQUEST_PENDING, ROLE_LAB, STOCK_ROLES
from .db import get_db
from .exceptions import NotFound
from .history import recent_events
from .utils import jsonable, serialize_doc


class LabListView(APIView):
    @authenticate_request
    @require_role(*STOCK_ROLES)
    def get(self, request):
        db = get_db()
        cursor = db.users.find(
            {"role": ROLE_LAB, "isActive": True},
            {"name": 1, "email": 1, "phone": 1, "address": 1},
        ).sort("name", 1)
        return Response({"success": True, "labs": [serialize_doc(lab) for lab in cursor]})


class FacilityDashboardView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def get(self, request):
        db = get_db()
        facility_id = request.user_id

        if request.user_role == ROLE_LAB:
            requests = blood_requests.list_requests(db, lab_id=facility_id)
        else:
            requests = blood_requests.list_requests(db, hospital_id=facility_id)

        total_camps = db.camps.count_documents({"hospital": facility_id})
        upcoming_camps = db.camps.count_documents({"hospital": facility_id, "status": CAMP_UPCOMING})

        return Response({
            "success": True,
            "stats": {
                "totalUnits": inventory.total_available(db, facility_id),
                "pendingRequests": sum(1 for r in requests if r['status'] == REQUEST_PENDING),
                "totalRequests": len(requests),
                "totalCamps": total_camps,
                "upcomingCamps": upcoming_camps,
            },
            "inventory": inventory.inventory_summary(db, facility_id),
            "recentRequests": [serialize_doc(r) for r in requests[:5]],
        })


class FacilityHistoryView(APIView):
    @authenticate_request
    @require_role(*FACILITY_ROLES)
    def get(self, request):
        account = get_db().users.find_one({"_id": request.user_id}, {"history": 1, "lastLogin": 1})
        if not account:
            raise NotFound("Facility not found")
        history = [jsonable(event) for event in recent_events(account)]
        return Response({"success": True, "history": history})
