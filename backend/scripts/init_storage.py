"""
Initialize the configured storage: write the seed dataset into empty slots.
Run with: python -m scripts.init_storage
Run with: python -m scripts.init_storage --reset  (wipe all clinic slots first)
"""

import argparse
from clinic.config import get_settings
from clinic.storage import KeyValueStorage, get_storage
from clinic.store import ClinicStore, INCIDENTS_KEY, PATIENTS_KEY, SESSION_KEY, USERS_KEY

CLINIC_KEYS = (USERS_KEY, PATIENTS_KEY, INCIDENTS_KEY, SESSION_KEY)


def init(storage: KeyValueStorage, reset: bool = False) -> ClinicStore:
    if reset:
        print("Clearing clinic storage slots...")
        for key in CLINIC_KEYS:
            storage.remove_item(key)
    store = ClinicStore(storage)
    store.init()
    print(
        f"Storage ready: {len(store.patients)} patients, "
        f"{len(store.incidents)} incidents."
    )
    return store


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the clinic key-value storage")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Remove existing users, patients, incidents and session before seeding",
    )
    args = parser.parse_args()

    storage = get_storage(get_settings())
    try:
        init(storage, reset=args.reset).shutdown()
    finally:
        storage.close()
