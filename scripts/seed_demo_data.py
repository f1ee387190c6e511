#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.core.security import hash_password
from app.db.session import AsyncSessionLocal
from app.models.user import User
from app.services.comments import create_comment
from app.services.friends import accept_request, is_friend, send_request
from app.services.groups import create_group, update_role
from app.services.memos import create_memo
from app.services.permissions import Role
from app.services.users import get_user_by_handle

logger = logging.getLogger("seed_demo_data")

DEMO_PASSWORD = "notemap-demo"

DEMO_USERS = (
    ("hana", "Hana"),
    ("kenji", "Kenji"),
    ("sora", "Sora"),
)

# (title, place, latitude, longitude)
DEMO_MEMOS = (
    ("朝ごはん", "築地場外市場", 35.6655, 139.7707),
    ("夕焼けスポット", "お台場海浜公園", 35.6298, 139.7745),
    ("Bookstore", "神保町", 35.6959, 139.7576),
)


@dataclass
class SeedStats:
    users_created: int = 0
    users_existing: int = 0
    friendships: int = 0
    groups: int = 0
    memos: int = 0


def demo_email(handle: str, domain: str) -> str:
    return f"{handle}@{domain}"


async def _ensure_user(db: AsyncSession, handle: str, display_name: str, *, domain: str, stats: SeedStats) -> User:
    user = await get_user_by_handle(db, handle)
    if user is not None:
        stats.users_existing += 1
        return user

    user = User(
        email=demo_email(handle, domain),
        handle=handle,
        display_name=display_name,
        password_hash=hash_password(DEMO_PASSWORD),
    )
    db.add(user)
    await db.flush()
    stats.users_created += 1
    logger.info("created user handle=%s", handle)
    return user


async def run_seed(db: AsyncSession, *, apply: bool, domain: str) -> SeedStats:
    stats = SeedStats()
    users = [await _ensure_user(db, h, name, domain=domain, stats=stats) for h, name in DEMO_USERS]
    owner, *others = users

    for other in others:
        if await is_friend(db, owner.id, other.id):
            continue
        await send_request(db, owner.id, other.id)
        await accept_request(db, owner.id, other.id)
        stats.friendships += 1

    if stats.users_created:
        group = await create_group(db, owner.id, "東京さんぽ", [u.id for u in others])
        await update_role(db, group.id, owner.id, others[0].id, Role.EDITOR)
        stats.groups += 1

        for title, place, lat, lon in DEMO_MEMOS:
            memo = await create_memo(
                db,
                user_id=owner.id,
                title=title,
                content="",
                place=place,
                latitude=lat,
                longitude=lon,
                group_id=group.id,
            )
            await create_comment(db, memo.id, others[0].id, "行きたい!")
            stats.memos += 1
    else:
        logger.info("demo users already present, skipping group and memos")

    if apply:
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    else:
        await db.rollback()

    return stats


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed demo users, a shared group and a few memos.")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Persist the rows. Without this flag, the script runs in dry-run mode.",
    )
    parser.add_argument("--domain", default="example.com", help="Email domain for demo accounts.")
    parser.add_argument("--verbose", action="store_true", help="Log row-level actions.")
    return parser.parse_args()


def _print_summary(*, apply: bool, stats: SeedStats) -> None:
    mode = "apply" if apply else "dry-run"
    print("Demo data seed complete")
    print(f"mode: {mode}")
    print(f"users_created: {stats.users_created}")
    print(f"users_existing: {stats.users_existing}")
    print(f"friendships: {stats.friendships}")
    print(f"groups: {stats.groups}")
    print(f"memos: {stats.memos}")
    if apply and stats.users_created:
        print(f"password for demo accounts: {DEMO_PASSWORD}")


async def _main_async(args: argparse.Namespace) -> SeedStats:
    async with AsyncSessionLocal() as db:
        return await run_seed(db, apply=args.apply, domain=args.domain)


def main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    stats = asyncio.run(_main_async(args))
    _print_summary(apply=args.apply, stats=stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
