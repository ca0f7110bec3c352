import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.clearbroker.models import Broker  # noqa: E402
from app.clearbroker.db import url_session_scope  # noqa: E402


def seed_only(*, database_url: str | None = None) -> bool:
    """
    Seed the admin broker in an idempotent way.
    Does NOT overwrite an existing broker's password or flags.
    Returns True if a broker row was created.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@clearbroker.com").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    admin_name = (os.environ.get("ADMIN_NAME") or "Admin User").strip()
    hash_method = (os.environ.get("PASSWORD_HASH_METHOD") or "scrypt").strip()

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///clearbroker.db").strip()

    created = False
    with url_session_scope(db_url) as s:
        broker = s.query(Broker).filter(Broker.email == admin_email).one_or_none()
        if broker is None:
            broker = Broker(
                name=admin_name,
                email=admin_email,
                password_hash=generate_password_hash(admin_password, method=hash_method),
                company_name="ClearBroker Admin",
                is_admin=True,
            )
            s.add(broker)
            created = True

    if created:
        print(f"Admin broker created: {admin_email}")
        print("Admin password: (from ADMIN_PASSWORD)")
    else:
        print(f"Admin broker already exists: {admin_email} (left unchanged)")
    return created


def main() -> None:
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
