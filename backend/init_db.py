"""
Initialize the database and optionally load demo data.

Run this script once to set up the database:
    python init_db.py
    python init_db.py --demo    # also add a few links and clicks
"""

import sys
from datetime import timedelta

from popular_clicks.database import engine, Base, SessionLocal
from popular_clicks.models import Link, Click
from popular_clicks.config import settings
from popular_clicks.services.windows import local_now

DEMO_LINKS = [
    ("docs", "https://docs.python.org/3/", "Python documentation"),
    ("pypi", "https://pypi.org/", "Python Package Index"),
    ("peps", "https://peps.python.org/", "Python Enhancement Proposals"),
]


def init_database():
    """Create all database tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Database tables created successfully!")


def load_demo_data():
    """Add demo links with clicks spread over the last few weeks"""
    db = SessionLocal()

    try:
        if db.query(Link).first():
            print("Links already exist in the database.")
            print("Skipping demo data.")
            return

        now = local_now(offset_seconds=settings.utc_offset_seconds).replace(microsecond=0)

        for position, (short_code, url, title) in enumerate(DEMO_LINKS):
            db.add(Link(short_code=short_code, original_url=url, title=title))
            # Fewer clicks for links further down the list
            for hours_ago in range(0, 24 * 21, 5 + position * 4):
                db.add(Click(
                    short_code=short_code,
                    clicked_at=now - timedelta(hours=hours_ago),
                    ip_address="203.0.113.10",
                    country_code="GB"
                ))

        db.commit()
        print(f"Added {len(DEMO_LINKS)} demo links with clicks.")

    except Exception as e:
        print(f"Error loading demo data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 50)
    print("Popular Clicks - Database Initialization")
    print("=" * 50)

    init_database()
    if "--demo" in sys.argv[1:]:
        load_demo_data()

    print("\nDatabase initialization complete!")
    print("\nYou can now start the server with:")
    print("    uvicorn popular_clicks.main:app --reload")
