from __future__ import annotations

from core.db import session_scope
from core.security import hash_password, verify_password
from core.services.enrollment import get_coaching_client_by_user_id, get_user_by_email
from db.seed import SEED_ACCOUNTS, SEED_PASSWORD, seed_local_accounts


def main() -> int:
    seed_local_accounts()
    all_ok = True
    with session_scope() as s:
        for account in SEED_ACCOUNTS:
            user = get_user_by_email(s, account["email"])
            if user is None:
                print(f"{account['email']} missing")
                all_ok = False
                continue
            if not verify_password(SEED_PASSWORD, user.password):
                user.password = hash_password(SEED_PASSWORD)
                print(f"{user.email} password_reset=true")
            client = get_coaching_client_by_user_id(s, user.id)
            status = client.status if client is not None else "-"
            print(f"{user.email} exists=true coaching_status={status}")

    return 0 if all_ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
