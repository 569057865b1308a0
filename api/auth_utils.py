"""
Authentication Utilities for JWT Token Issuance and Validation
Ensures that:
1. JWT token is valid and unexpired
2. User still exists in database and is active
3. User has correct permissions
"""
import datetime
import logging
from functools import wraps

import jwt
from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ImproperlyConfigured

from .constants import FACILITY_PENDING, FACILITY_REJECTED, FACILITY_ROLES
from .db import get_db
from .exceptions import Forbidden, NotFound, Unauthorized
from .utils import to_object_id

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'

APPROVAL_MESSAGES = {
    FACILITY_PENDING: "Your account is awaiting admin approval. Please wait before logging in.",
    FACILITY_REJECTED: "Your registration has been rejected by admin. Contact support for details.",
}


class TokenService:
    """Signs and verifies bearer tokens carrying account id, role and email."""

    def __init__(self, secret, lifetime_days=7):
        if not secret:
            raise ImproperlyConfigured("JWT_SECRET is not configured")
        self.secret = secret
        self.lifetime = datetime.timedelta(days=lifetime_days)

    def issue(self, account):
        now = datetime.datetime.now(datetime.timezone.utc)
        payload = {
            "id": str(account['_id']),
            "role": account['role'],
            "email": account['email'],
            "iat": now,
            "exp": now + self.lifetime,
        }
        token = jwt.encode(payload, self.secret, algorithm=ALGORITHM)
        # PyJWT < 2 returns bytes
        if isinstance(token, bytes):
            token = token.decode('utf-8')
        return token

    def decode(self, token):
        try:
            return jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token has expired")
        except jwt.InvalidTokenError:
            raise Unauthorized("Invalid token")


_token_service = None


def configure_tokens(secret, lifetime_days=7):
    global _token_service
    _token_service = TokenService(secret, lifetime_days)
    return _token_service


def get_token_service():
    if _token_service is None:
        raise ImproperlyConfigured("Token service has not been configured")
    return _token_service


def token_is_live(token):
    """Client-side check: the token is well formed and its exp claim is in the future.

    The signature is not verified, and a token stays live until it expires
    since nothing server-side revokes it.
    """
    try:
        payload = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError:
        return False
    exp = payload.get('exp')
    if not isinstance(exp, (int, float)):
        return False
    return exp > datetime.datetime.now(datetime.timezone.utc).timestamp()


def check_facility_approval(account):
    """Facilities may only act once an admin has approved them."""
    if account.get('role') in FACILITY_ROLES:
        message = APPROVAL_MESSAGES.get(account.get('status'))
        if message:
            raise Forbidden(message)


def hash_password(raw_password):
    return make_password(raw_password)


def verify_password(raw_password, stored_hash):
    if not raw_password or not stored_hash:
        return False
    return check_password(raw_password, stored_hash)


def authenticate_request(view_func):
    """
    Decorator to validate JWT token and verify user exists in database.
    Extracts user info and injects it into request.

    Usage:
        @authenticate_request
        def get(self, request):
            user_id = request.user_id  # Validated user ObjectId
            user_role = request.user_role  # donor/hospital/lab/admin
    """
    @wraps(view_func)
    def wrapper(self, request, *args, **kwargs):
        # 1. Extract Token from Authorization Header
        auth_header = request.headers.get('Authorization')
        if not auth_header or not auth_header.startswith('Bearer '):
            raise Unauthorized("Authorization token required")

        token = auth_header.split(' ', 1)[1].strip()

        # 2. Decode and Validate JWT
        payload = get_token_service().decode(token)
        user_id = payload.get('id')
        if not user_id:
            raise Unauthorized("Invalid token payload")

        # 3. Verify User Still Exists in Database
        try:
            oid = to_object_id(user_id)
        except NotFound:
            raise Unauthorized("Invalid user identifier")
        user = get_db().users.find_one({"_id": oid}, {"password": 0})
        if not user or not user.get('isActive', True):
            raise Unauthorized("User no longer exists")
        check_facility_approval(user)

        # 4. Inject validated user info into request
        request.user_id = oid
        request.user_role = user['role']
        request.user_data = user

        return view_func(self, request, *args, **kwargs)

    return wrapper


def require_role(*allowed_roles):
    """
    Decorator to restrict access to specific user roles.
    Must be used AFTER @authenticate_request.

    Usage:
        @authenticate_request
        @require_role('hospital', 'admin')
        def post(self, request):
            ...
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(self, request, *args, **kwargs):
            user_role = getattr(request, 'user_role', None)
            if not user_role:
                raise Unauthorized("Authentication required")
            if user_role not in allowed_roles:
                logger.info("Role %s refused for %s", user_role, view_func.__qualname__)
                raise Forbidden("Insufficient permissions")
            return view_func(self, request, *args, **kwargs)
        return wrapper
    return decorator
