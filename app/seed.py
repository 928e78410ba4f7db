import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from app.db.session import SessionLocal
from app.core.security import hash_password
from app.models.user import User
from app.models.vehicle import Vehicle


def ensure_user(db: Session, email: str, password: str, role: str, name: str, phone: str = "") -> User:
    u = db.query(User).filter(User.email == email).first()
    if u:
        return u
    u = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=name,
        phone=phone,
        role=role,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    return u


def ensure_vehicle(db: Session, owner: User, title: str, base_price: float, base_price_outstation: float | None):
    if db.query(Vehicle).filter(Vehicle.owner_id == owner.id, Vehicle.title == title).first():
        return
    db.add(Vehicle(
        id=str(uuid.uuid4()),
        owner_id=owner.id,
        title=title,
        base_price=base_price,
        base_price_outstation=base_price_outstation,
        images=[],
        status="available",
    ))
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except ProgrammingError:
            db.rollback()
            print("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(db, "admin@rento.local", "admin12345", "admin", "Admin")
        seller = ensure_user(db, "seller@rento.local", "seller12345", "seller", "Demo Seller", "+91-9000000000")
        ensure_user(db, "renter@rento.local", "renter12345", "user", "Demo Renter")

        ensure_vehicle(db, seller, "Maruti Swift Dzire", 1000, 1500)
        ensure_vehicle(db, seller, "Toyota Innova Crysta", 2500, None)
        print("[seed] demo users and vehicles ready.")
    finally:
        db.close()


if __name__ == "__main__":
    run()
