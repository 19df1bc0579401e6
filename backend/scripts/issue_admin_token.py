"""
Issue an admin access token (JWT) for the /admin endpoints.

Run from the backend/ directory:
    python scripts/issue_admin_token.py ops@example.com --role super_admin
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from domain.enums import AdminRole
from middleware.auth import issue_access_token

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Issue an admin JWT")
    parser.add_argument("subject", help="who the token is for")
    parser.add_argument("--role", choices=[r.value for r in AdminRole], default=AdminRole.ADMIN.value)
    parser.add_argument("--ttl-minutes", type=int, default=None)
    args = parser.parse_args()
    print(issue_access_token(subject=args.subject, role=args.role, ttl_minutes=args.ttl_minutes))
