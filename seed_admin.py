import os
import sys

import django

# Setup Django Environment
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
django.setup()

from api.auth_utils import hash_password  # noqa: E402
from api.constants import ROLE_ADMIN  # noqa: E402
from api.db import get_db  # noqa: E402
from api.utils import utcnow  # noqa: E402


def seed_admin(email, password, name="Super Admin"):
    db = get_db()
    now = utcnow()
    admin_user = {
        "name": name,
        "email": email.strip().lower(),
        "password": hash_password(password),
        "role": ROLE_ADMIN,
        "isActive": True,
        "updatedAt": now,
    }
    result = db.users.update_one(
        {"email": admin_user["email"]},
        {"$set": admin_user, "$setOnInsert": {"createdAt": now, "history": []}},
        upsert=True,
    )
    return result.upserted_id is not None


if __name__ == "__main__":
    email = os.getenv('ADMIN_EMAIL')
    password = os.getenv('ADMIN_PASSWORD')
    if not email or not password or len(password) < 6:
        print("Set ADMIN_EMAIL and ADMIN_PASSWORD (at least 6 characters) first.")
        sys.exit(1)

    created = seed_admin(email, password)
    print(f"{'Created' if created else 'Updated'} admin user: {email}")
