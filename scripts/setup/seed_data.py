"""
Seed reference data: districts, collection zones and the achievement catalog.
Safe to re-run: existing rows (matched by name/code) are left alone.
Usage: python scripts/setup/seed_data.py [--with-demo-users]
"""

import argparse
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from datetime import datetime
from app.database import SessionLocal, create_tables
from app.models.district import District
from app.models.user import User
from app.models.zone import Zone
from app.services.achievement_service import seed_achievements
from app.services.zone_service import create_zone

DISTRICTS = [
    {"name": "Centre-ville", "city": "Yaoundé", "code": "YDE-CV"},
    {"name": "Bastos", "city": "Yaoundé", "code": "YDE-BA"},
    {"name": "Mvog-Ada", "city": "Yaoundé", "code": "YDE-MA"},
    {"name": "Akwa", "city": "Douala", "code": "DLA-AK"},
    {"name": "Bonapriso", "city": "Douala", "code": "DLA-BO"},
]

# (district code, name, lat, lng, capacity L, zone type)
ZONES = [
    ("YDE-CV", "Place de l'Indépendance", 3.8667, 11.5167, 1000, "public"),
    ("YDE-CV", "Marché Central", 3.8689, 11.5213, 2000, "commercial"),
    ("YDE-BA", "Quartier Bastos Nord", 3.8900, 11.5100, 800, "residential"),
    ("YDE-MA", "Carrefour Mvog-Ada", 3.8600, 11.5300, 1200, "residential"),
    ("DLA-AK", "Port Autonome", 4.0511, 9.7679, 5000, "industrial"),
    ("DLA-BO", "Rue Bonapriso", 4.0300, 9.7000, 1000, "residential"),
]

DEMO_USERS = [
    {"name": "Admin EcoSmart", "email": "admin@ecosmart.local", "role": "admin"},
    {"name": "Paul Nkomo", "email": "collector@ecosmart.local", "role": "collector"},
    {"name": "Marie Essono", "email": "citizen@ecosmart.local", "role": "citizen"},
]


def seed_districts(db) -> dict:
    by_code = {d.code: d for d in db.query(District).all()}
    for entry in DISTRICTS:
        if entry["code"] not in by_code:
            district = District(is_active=True, **entry)
            db.add(district)
            by_code[entry["code"]] = district
    db.commit()
    return by_code


def seed_zones(db, districts: dict) -> int:
    existing = {name for (name,) in db.query(Zone.name)}
    added = 0
    for code, name, lat, lng, capacity, zone_type in ZONES:
        if name in existing:
            continue
        create_zone(db, name=name, capacity_liters=capacity, district_id=districts[code].id,
                    zone_type=zone_type, latitude=lat, longitude=lng)
        added += 1
    return added


def seed_users(db) -> int:
    existing = {email for (email,) in db.query(User.email)}
    added = 0
    for entry in DEMO_USERS:
        if entry["email"] in existing:
            continue
        db.add(User(points=0, level=1, is_active=True, created_at=datetime.utcnow(), **entry))
        added += 1
    db.commit()
    return added


def main():
    parser = argparse.ArgumentParser(description="Seed EcoSmart reference data")
    parser.add_argument("--with-demo-users", action="store_true", help="Also create admin/collector/citizen users")
    args = parser.parse_args()

    create_tables()
    db = SessionLocal()
    try:
        districts = seed_districts(db)
        print(f"🏙️  Districts: {len(districts)}")
        print(f"🗑️  Zones added: {seed_zones(db, districts)}")
        print(f"🏆 Achievements added: {seed_achievements(db)}")
        if args.with_demo_users:
            print(f"👤 Demo users added: {seed_users(db)}")
    finally:
        db.close()
    print("✅ Seed complete")


if __name__ == "__main__":
    main()
