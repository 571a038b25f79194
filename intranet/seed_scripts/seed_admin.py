import asyncio
import os
from dotenv import load_dotenv
from sqlmodel import select
from intranet.auth.utils import normalize_phone
from intranet.db.connection import async_session
from intranet.schema.full_schema import AdminRole, AdminUser

load_dotenv()


async def create_admin(session_maker=async_session, env=os.environ) -> AdminUser:
    raw_phone = env.get("ADMIN_PHONE")
    admin_name = env.get("ADMIN_NAME", "Admin")
    admin_role = env.get("ADMIN_ROLE", AdminRole.SUPERADMIN.value)

    if not raw_phone:
        raise SystemExit("Set ADMIN_PHONE environment variable before running")
    phone = normalize_phone(raw_phone)
    if phone is None:
        raise SystemExit(f"ADMIN_PHONE is not a valid Ghana phone number: {raw_phone}")
    if admin_role not in {r.value for r in AdminRole}:
        raise SystemExit(f"ADMIN_ROLE must be one of {[r.value for r in AdminRole]}")

    async with session_maker() as session:
        q = await session.execute(select(AdminUser).where(AdminUser.phone == phone))
        admin = q.scalar_one_or_none()

        if not admin:
            admin = AdminUser(phone=phone, name=admin_name, role=admin_role)
            session.add(admin)
            print(f"Created admin {admin_name} ({admin_role})")
        else:
            # re-running the bootstrap restores access
            admin.name = admin_name
            admin.role = admin_role
            admin.is_active = True
            session.add(admin)
            print(f"Updated existing admin id={admin.id}")

        await session.commit()
        await session.refresh(admin)

    print("Done.")
    return admin

if __name__ == "__main__":
    asyncio.run(create_admin())
