#!/usr/bin/env python3
"""Seed a demo host and the starter storage listings.

Usage:
    python scripts/seed_listings.py
    python scripts/seed_listings.py --host-id <identity-provider-user-id>
"""

import argparse
import asyncio
from decimal import Decimal

from sqlalchemy import select

from storeaway.database import AsyncSessionLocal
from storeaway.models.listing import Listing
from storeaway.models.user import Profile

DEMO_HOST_ID = "user-2"

SPACES = [
    {
        "name": "Compact City Locker",
        "location": "Downtown, Metropolis",
        "size": 25,
        "monthly_price": Decimal("50"),
        "description": "Perfect for students or for storing a few boxes and small items. Secure and accessible 24/7.",
        "images": [
            "https://picsum.photos/seed/space1/800/600",
            "https://picsum.photos/seed/space1a/800/600",
            "https://picsum.photos/seed/space1b/800/600",
        ],
        "features": ["24/7 Access", "CCTV Security", "Climate Controlled"],
    },
    {
        "name": "Suburban Garage Unit",
        "location": "Oakwood Suburbs, Metropolis",
        "size": 200,
        "monthly_price": Decimal("180"),
        "description": "A spacious garage-sized unit, ideal for furniture, appliances, or even a classic car. Drive-up access.",
        "images": [
            "https://picsum.photos/seed/space2/800/600",
            "https://picsum.photos/seed/space2a/800/600",
        ],
        "features": ["Drive-up Access", "Ground Floor", "Roll-up Door"],
    },
    {
        "name": "Medium Business Storage",
        "location": "Industrial Park, Metropolis",
        "size": 500,
        "monthly_price": Decimal("450"),
        "description": "Excellent for business inventory, equipment, or documents. High ceilings and wide access doors.",
        "images": ["https://picsum.photos/seed/space3/800/600"],
        "features": ["24/7 Access", "CCTV Security", "Loading Dock"],
    },
    {
        "name": "The Collector's Vault",
        "location": "Uptown, Metropolis",
        "size": 100,
        "monthly_price": Decimal("300"),
        "description": "A premium, climate-controlled unit for valuable collections like wine, art, or antiques. Maximum security.",
        "images": [
            "https://picsum.photos/seed/space4/800/600",
            "https://picsum.photos/seed/space4a/800/600",
        ],
        "features": ["Climate Controlled", "High Security", "Individual Alarms"],
    },
    {
        "name": "Walk-in Closet Size",
        "location": "Downtown, Metropolis",
        "size": 50,
        "monthly_price": Decimal("95"),
        "description": "Equivalent to a large closet. Great for storing seasonal clothing, sports equipment, or documents.",
        "images": ["https://picsum.photos/seed/space5/800/600"],
        "features": ["24/7 Access", "CCTV Security", "Elevator Access"],
    },
    {
        "name": "Large Warehouse Space",
        "location": "Industrial Park, Metropolis",
        "size": 2000,
        "monthly_price": Decimal("1500"),
        "description": "Vast space for commercial use, large-scale storage, or vehicle parking. Forklift available on site.",
        "images": [
            "https://picsum.photos/seed/space6/800/600",
            "https://picsum.photos/seed/space6a/800/600",
        ],
        "features": ["Drive-up Access", "Loading Dock", "High Ceilings"],
    },
]


async def seed(host_id: str) -> None:
    """Create the host profile and any missing listings."""
    async with AsyncSessionLocal() as session:
        host = await session.get(Profile, host_id)
        if host is None:
            host = Profile(
                id=host_id,
                email="jane.smith@example.com",
                display_name="Jane Smith",
                role="host",
            )
            session.add(host)
            print(f"Created host profile: {host_id}")
        else:
            host.role = "host"

        result = await session.execute(select(Listing.name).where(Listing.host_id == host_id))
        existing = set(result.scalars().all())

        created = 0
        for space in SPACES:
            if space["name"] in existing:
                continue
            session.add(Listing(host_id=host_id, is_available=True, **space))
            created += 1

        await session.commit()
        print(f"Seeded {created} listings ({len(existing)} already present)")


def main():
    parser = argparse.ArgumentParser(description="Seed demo listings")
    parser.add_argument("--host-id", default=DEMO_HOST_ID, help="Identity-provider user id of the host")
    args = parser.parse_args()

    asyncio.run(seed(args.host_id))


if __name__ == "__main__":
    main()
