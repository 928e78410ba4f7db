"""Read-only lookups into the vehicle catalog and user directory."""
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.models.user import User
from app.models.vehicle import Vehicle
from app.services.bid_validator import validate_id


def get_vehicle(db: Session, vehicle_id: str) -> Vehicle:
    vehicle = db.get(Vehicle, validate_id(vehicle_id, "vehicle ID"))
    if not vehicle:
        raise NotFound("Vehicle not found")
    return vehicle


def get_owner(db: Session, vehicle: Vehicle) -> User:
    owner = db.get(User, vehicle.owner_id)
    if not owner:
        raise NotFound("Vehicle owner not found")
    return owner
