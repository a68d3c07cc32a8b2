"""
reset_data.py
-------------
Utility script to delete every row (bookings, vehicles, users) from the
database configured by DATABASE_URL.

This script is designed for development and testing purposes.
Tables are kept; only their contents are removed.

Usage:
    $ python reset_data.py

After running this script, you can repopulate sample data by executing:
    $ python seeds.py
"""

from rental_api.config import Config
from rental_api.models.store import Store


def main():
    """
    Clear all data from the configured database.

    Bookings are removed before vehicles and users so foreign keys never
    point at a missing row.
    """
    store = Store(Config.DATABASE_URL)
    store.init_schema()
    store.clear()
    store.dispose()

    print("✅ All tables have been cleared.")
    print("💡 Tip: Run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
