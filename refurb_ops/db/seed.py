"""
Database seeding utilities for minimal reference data.

Seeds:
- One active user per role (<role>@refurb.local) sharing SEED_DEFAULT_PASSWORD
- Default racks for every stage (RCV, WFR, UR, AQC, RFD)
- A few common laptop spare parts

Every step is idempotent, so the seed can run on each startup.

Usage:
  python -m refurb_ops.db.run_migrations upgrade head
  python -m refurb_ops.db.seed
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from refurb_ops.core.security import get_password_hash
from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.models.inventory import SparePart
from refurb_ops.db.session import get_session_maker
from refurb_ops.repositories.inventory import SparePartRepository
from refurb_ops.repositories.security import UserRepository
from refurb_ops.services.procurement import RackService
from refurb_ops.workflow.enums import Role
from refurb_ops.workflow.users import get_role_display_name

logger = logging.getLogger(__name__)

SEED_EMAIL_DOMAIN = "refurb.local"

# (part_code, description, category, compatible_models, min, max, stock, bin)
SAMPLE_SPARE_PARTS: List[Tuple[str, str, str, str, int, int, int, str]] = [
    ("KB-LAT-5490", "Keyboard assembly", "Keyboard", "Latitude 5490, Latitude 5480", 5, 50, 12, "A-1-01"),
    ("BAT-T480-3C", "Battery 3-cell 24Wh", "Battery", "ThinkPad T480, ThinkPad T470", 5, 40, 8, "A-1-02"),
    ("LCD-14-FHD", "14in FHD IPS panel", "Display", "", 3, 20, 4, "A-2-01"),
    ("FAN-EB840-G5", "CPU cooling fan", "Cooling", "EliteBook 840 G5", 2, 20, 6, "A-2-02"),
]


def seed_email(role: Role) -> str:
    return f"{role.value.lower()}@{SEED_EMAIL_DOMAIN}"


# PUBLIC_INTERFACE
async def seed_all() -> None:
    """
    Seed the database with minimal reference data.

    This function:
      - Creates one user per role if missing
      - Creates any missing default racks
      - Adds sample spare parts if missing
    """
    async with get_session_maker()() as session:
        await _seed_users(session)
        await RackService(session).initialize_defaults()
        await _seed_spare_parts(session)
        await session.commit()


async def _seed_users(session: AsyncSession) -> None:
    repo = UserRepository(session)
    password_hash = get_password_hash(get_app_settings().SEED_DEFAULT_PASSWORD)
    created = 0
    for role in Role:
        email = seed_email(role)
        if await repo.get_user_by_email(email) is not None:
            continue
        await repo.create_user(
            email=email,
            name=get_role_display_name(role),
            hashed_password=password_hash,
            role=role.value,
        )
        created += 1
    await session.commit()
    logger.info("Seeded %d users", created)


async def _seed_spare_parts(session: AsyncSession) -> None:
    repo = SparePartRepository(session)
    for code, description, category, models, min_stock, max_stock, stock, bin_location in SAMPLE_SPARE_PARTS:
        if await repo.get_by_code(code) is not None:
            continue
        await repo.add(
            SparePart(
                part_code=code,
                description=description,
                category=category,
                compatible_models=models or None,
                min_stock=min_stock,
                max_stock=max_stock,
                current_stock=stock,
                bin_location=bin_location,
            )
        )


if __name__ == "__main__":
    asyncio.run(seed_all())
