"""
Promote Admin Script
Grants (or revokes) the admin role by email. Only admins can change roles
through the API, so the first admin has to be created here.

Usage:
    python -m app.scripts.promote_admin alice@example.com
    python -m app.scripts.promote_admin alice@example.com --role member
"""

import argparse
import sys
from app.database.supabase_client import SupabaseClient
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_role_by_email(supabase: Client, email: str, role: str) -> bool:
    """Set the role of the profile with this email; False when no profile matches"""
    existing = supabase.table("profiles")\
        .select("id, role")\
        .eq("email", email)\
        .execute()

    if not existing.data:
        logger.error(f"No profile found for {email}")
        return False

    profile = existing.data[0]
    if profile["role"] == role:
        logger.info(f"{email} already has role {role}")
        return True

    supabase.table("profiles")\
        .update({"role": role})\
        .eq("id", profile["id"])\
        .execute()
    logger.info(f"Set role of {email} ({profile['id']}) to {role}")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Grant or revoke the PairTrack admin role")
    parser.add_argument("email")
    parser.add_argument("--role", choices=["admin", "member"], default="admin")
    args = parser.parse_args(argv)

    try:
        supabase = SupabaseClient.get_service_client()
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    return 0 if set_role_by_email(supabase, args.email, args.role) else 1


if __name__ == "__main__":
    sys.exit(main())
