from sqlalchemy import select

from rental_api import create_app
from rental_api.models.store import Store, partial_update, users, vehicles
from rental_api.services.vehicle_service import VehicleService
from rental_api.utils.context import get_store
from rental_api.utils.security import generate_hash


def ensure_user(store: Store, name: str, email: str, password: str, phone: str, role: str):
    """
    Ensure a user with `email` exists in the store.
    - If exists: update password hash and role (idempotent).
    - If not:   create a new user.
    """
    with store.transaction() as conn:
        row = conn.execute(select(users.c.id).where(users.c.email == email)).first()
        if row:
            partial_update(conn, users, row[0], {"password_hash": generate_hash(password), "role": role})
            return row[0]
        result = conn.execute(
            users.insert().values(
                name=name, email=email, password_hash=generate_hash(password), phone=phone, role=role,
            )
        )
        return result.inserted_primary_key[0]


def main():
    app = create_app()
    with app.app_context():
        store = get_store()

        # ---- Admin / Customer demo accounts ----
        ensure_user(store, "Admin", "admin@example.com", "Admin123", "0211234567", "admin")
        ensure_user(store, "Alice", "alice@example.com", "Alice123", "0217654321", "customer")
        ensure_user(store, "Bob", "bob@example.com", "Bob12345", "0219876543", "customer")

        # ---- Demo vehicles (create only if none exist) ----
        with store.connect() as conn:
            has_vehicles = conn.execute(select(vehicles.c.id)).first() is not None
        if not has_vehicles:
            VehicleService.create_vehicle(store, {
                "vehicle_name": "Toyota Corolla", "type": "car",
                "registration_number": "ABC-123", "daily_rent_price": 45,
            })
            VehicleService.create_vehicle(store, {
                "vehicle_name": "Honda Civic", "type": "car",
                "registration_number": "DEF-456", "daily_rent_price": 50,
            })
            VehicleService.create_vehicle(store, {
                "vehicle_name": "Yamaha MT-07", "type": "bike",
                "registration_number": "MOTO-07", "daily_rent_price": 40,
            })
            VehicleService.create_vehicle(store, {
                "vehicle_name": "Ford Transit", "type": "van",
                "registration_number": "VAN-900", "daily_rent_price": 95,
            })
            VehicleService.create_vehicle(store, {
                "vehicle_name": "Toyota RAV4", "type": "SUV",
                "registration_number": "SUV-404", "daily_rent_price": 80,
            })

        print("✅ Seed complete.")
        print("🔑 Admin login:     admin@example.com / Admin123")
        print("👤 Customer login:  alice@example.com / Alice123")
        print("👤 Customer login:  bob@example.com / Bob12345")


if __name__ == "__main__":
    main()
