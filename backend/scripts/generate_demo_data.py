"""
Generate synthetic patients with a handful of appointments each.
Run with: python -m scripts.generate_demo_data
Run with: python -m scripts.generate_demo_data --count 50 --seed 7
"""

import argparse
import random
from datetime import date, datetime, timedelta
from typing import Optional
from clinic.auth import SYSTEM_ADMIN
from clinic.config import get_settings
from clinic.storage import get_storage
from clinic.store import ClinicStore

FIRST_NAMES = [
    "Emily", "Sarah", "Maria", "Jessica", "Linda", "Priya", "Fatima", "Yuki",
    "James", "Robert", "Michael", "David", "Wei", "Carlos", "Hiroshi", "Omar",
]

LAST_NAMES = [
    "Johnson", "Williams", "Brown", "Garcia", "Miller", "Davis", "Martinez", "Wilson",
    "Chen", "Kim", "Patel", "Nguyen", "Singh", "Tanaka", "Santos", "Park",
]

HEALTH_NOTES = [
    "No known allergies",
    "Allergic to penicillin",
    "Allergic to latex",
    "Diabetes type 2",
    "Hypertension, on beta blockers",
    "Takes blood thinners",
    "Pregnant, second trimester",
]

# (title, description, treatment, cost range)
PROCEDURES = [
    ("Routine Cleaning", "6-month dental cleaning and checkup", "Professional cleaning, fluoride treatment", (80, 150)),
    ("Cavity Filling", "Fill cavity detected during exam", "Composite filling", (120, 250)),
    ("Root Canal", "Endodontic treatment of infected tooth", "Root canal therapy", (700, 1400)),
    ("Crown Preparation", "Prepare tooth for crown placement", "Porcelain crown", (800, 1500)),
    ("Tooth Extraction", "Remove damaged tooth", "Simple extraction", (150, 400)),
    ("Whitening", "Cosmetic whitening session", "In-office bleaching", (300, 600)),
    ("Tooth Pain Consultation", "Patient reports pain while chewing", None, None),
]


def generate_name() -> str:
    return f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}"


def generate_dob(min_age: int = 5, max_age: int = 85) -> date:
    age = random.randint(min_age, max_age)
    return date.today() - timedelta(days=age * 365 + random.randint(0, 364))


def generate_contact() -> str:
    return "".join(str(random.randint(0, 9)) for _ in range(10))


def generate_incident(patient_id: str, now: datetime) -> dict:
    title, description, treatment, cost_range = random.choice(PROCEDURES)
    # Appointments fall on the hour or half hour during opening times
    when = (now + timedelta(days=random.randint(-120, 60))).replace(
        hour=random.randint(8, 17), minute=random.choice([0, 30]), second=0, microsecond=0
    )
    if when < now:
        status = random.choice(["Completed", "Completed", "Cancelled"])
    else:
        status = random.choice(["Scheduled", "Scheduled", "Pending"])

    incident = {
        "patientId": patient_id,
        "title": title,
        "description": description,
        "comments": "",
        "appointmentDate": when.isoformat(),
        "status": status,
        "files": [],
    }
    if status == "Completed" and cost_range:
        incident["cost"] = random.randint(*cost_range)
        incident["treatment"] = treatment
        incident["nextDate"] = (when.date() + timedelta(days=180)).isoformat()
    return incident


def generate(store: ClinicStore, count: int = 20, now: Optional[datetime] = None) -> tuple[int, int]:
    """Add `count` patients and their incidents; returns (patients, incidents) created."""
    now = now or datetime.now()
    created_incidents = 0
    print(f"Generating {count} synthetic patients...")
    for _ in range(count):
        name = generate_name()
        patient = store.add_patient(
            {
                "name": name,
                "dob": generate_dob().isoformat(),
                "contact": generate_contact(),
                "email": f"{name.lower().replace(' ', '.')}@example.com",
                "healthInfo": random.choice(HEALTH_NOTES),
            },
            actor=SYSTEM_ADMIN,
        )
        for _ in range(random.randint(1, 4)):
            store.add_incident(generate_incident(patient.id, now), actor=SYSTEM_ADMIN)
            created_incidents += 1
    print(f"Created {count} patients with {created_incidents} incidents.")
    return count, created_incidents


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Add synthetic patients and appointments to the clinic storage")
    parser.add_argument("--count", type=int, default=20, help="Number of patients to create")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible data")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)

    storage = get_storage(get_settings())
    try:
        with ClinicStore(storage) as store:
            generate(store, count=args.count)
    finally:
        storage.close()
