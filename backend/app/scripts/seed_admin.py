"""
Seed script: create tables and the admin user from ENV if missing
Run: python -m app.scripts.seed_admin
"""
from sqlmodel import Session, select
from app.db.session import engine, init_db
from app.models.user import AdminUser
from app.core.security import hash_password
from app.core.config import settings


def seed_admin():
    """Create the admin user if it does not exist"""
    admin_username = settings.ADMIN_USERNAME
    admin_password = settings.ADMIN_PASSWORD
    
    if not admin_password:
        print("ADMIN_PASSWORD not set, skipping admin seed")
        return
    
    with Session(engine) as session:
        existing = session.exec(
            select(AdminUser).where(AdminUser.username == admin_username)
        ).first()
        
        if existing:
            print(f"Admin already exists: {existing.username}")
            return
        
        admin = AdminUser(
            username=admin_username,
            password_hash=hash_password(admin_password),
            is_active=True
        )
        session.add(admin)
        session.commit()
        print(f"Admin created: {admin_username}")


def main():
    print("Creating tables...")
    init_db()
    print("Seeding admin...")
    seed_admin()
    print("Done!")


if __name__ == "__main__":
    main()
