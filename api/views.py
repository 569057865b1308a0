import logging

from django.conf import settings
from pymongo.errors import DuplicateKeyError
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from .auth_utils import (
    authenticate_request, check_facility_approval, get_token_service, hash_password, verify_password,
)
from .constants import EVENT_LOGIN, EVENT_PROFILE_UPDATE, FACILITY_ROLES, ROLE_ADMIN, ROLE_DONOR
from .db import get_db
from .exceptions import Conflict, Forbidden, NotFound, Unauthorized
from .history import record_event
from .serializers import REGISTRATION_SERIALIZERS, ProfileUpdateSerializer
from .utils import serialize_doc, utcnow

logger = logging.getLogger(__name__)


def serialize_account(doc):
    data = serialize_doc(doc)
    if data:
        data.pop('history', None)
    return data


def json_object(request):
    """The request body, which must be a JSON object."""
    if not isinstance(request.data, dict):
        raise ValidationError("Request body must be a JSON object")
    return request.data


class RegisterView(APIView):
    def post(self, request):
        db = get_db()
        data = json_object(request)

        if not all(data.get(field) for field in ('name', 'email', 'password', 'role')):
            raise ValidationError("Name, email, password and role are required")

        role = data.get('role')
        serializer_class = REGISTRATION_SERIALIZERS.get(role) if isinstance(role, str) else None
        if serializer_class is None:
            raise ValidationError(f"Role must be one of: {', '.join(REGISTRATION_SERIALIZERS)}")

        # Admins are seeded, not self-registered
        if role == ROLE_ADMIN and not settings.ALLOW_ADMIN_REGISTRATION:
            raise Forbidden("Admin registration is restricted")

        serializer = serializer_class(data=data)
        serializer.is_valid(raise_exception=True)
        account = serializer.to_document()

        if db.users.find_one({"email": account['email']}):
            raise Conflict("Email already registered")
        license_number = account.get('hospitalInfo', {}).get('licenseNumber')
        if license_number and db.users.find_one({"hospitalInfo.licenseNumber": license_number}):
            raise Conflict("License number already registered")

        account['password'] = hash_password(account['password'])
        now = utcnow()
        account['createdAt'] = now
        account['updatedAt'] = now

        try:
            result = db.users.insert_one(account)
        except DuplicateKeyError:
            # lost a race with a concurrent registration
            raise Conflict("Email or license number already registered")
        account['_id'] = result.inserted_id

        logger.info("Registered %s account %s", role, account['_id'])
        token = get_token_service().issue(account)

        return Response({
            "success": True,
            "message": "Account created successfully",
            "token": token,
            "user": serialize_account(account),
        }, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    def post(self, request):
        db = get_db()
        data = json_object(request)
        email = data.get('email') or ''
        password = data.get('password') or ''

        if not isinstance(email, str) or not isinstance(password, str):
            raise ValidationError("Email and password must be strings")
        email = email.strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = db.users.find_one({"email": email})
        if not user or not user.get('isActive', True):
            logger.info("Login refused for unknown or inactive account %s", email)
            raise Unauthorized("Invalid credentials or account inactive")

        if not verify_password(password, user.get('password')):
            logger.info("Login refused for %s: bad password", email)
            raise Unauthorized("Invalid credentials")
        check_facility_approval(user)

        now = utcnow()
        db.users.update_one({"_id": user['_id']}, {"$set": {"lastLogin": now}})
        user['lastLogin'] = now
        if user['role'] in FACILITY_ROLES:
            record_event(db, user['_id'], EVENT_LOGIN, "Signed in")

        token = get_token_service().issue(user)
        return Response({
            "success": True,
            "message": "Login successful",
            "token": token,
            "user": serialize_account(user),
        })


class ProfileView(APIView):
    @authenticate_request
    def get(self, request):
        db = get_db()
        user = db.users.find_one({"_id": request.user_id}, {"password": 0})
        if not user:
            raise NotFound("User not found")
        return Response({"success": True, "user": serialize_account(user)})

    @authenticate_request
    def put(self, request):
        db = get_db()
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        update_fields = {k: data[k] for k in ('name', 'phone', 'address') if k in data}
        if 'healthInfo' in data and request.user_role == ROLE_DONOR:
            update_fields['healthInfo'] = dict(data['healthInfo'])
        if 'emergencyContact' in data and request.user_role in FACILITY_ROLES:
            update_fields['hospitalInfo.emergencyContact'] = data['emergencyContact']

        if not update_fields:
            raise ValidationError("No fields to update")

        update_fields['updatedAt'] = utcnow()
        db.users.update_one({"_id": request.user_id}, {"$set": update_fields})
        if request.user_role in FACILITY_ROLES:
            record_event(db, request.user_id, EVENT_PROFILE_UPDATE, "Profile details updated")

        user = db.users.find_one({"_id": request.user_id}, {"password": 0})
        return Response({
            "success": True,
            "message": "Profile updated successfully",
            "user": serialize_account(user),
        })
