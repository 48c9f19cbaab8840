#!/usr/bin/env python3
"""
Assign referral codes to existing users who don't have one.

Usage:
    python backfill_referral_codes.py

Users created before referral codes existed only get a code when they first
open their referral page. This script assigns one to every such user up front,
using the same generator and collision handling as the API.
"""

import asyncio
import logging
from fastapi import HTTPException
from sqlalchemy import select
from db.session import SessionLocal
from db.models.user import User as UserModel
from services.referral_service import get_referral_code

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("backfill")


async def backfill_referral_codes() -> dict:
    """Assign codes to users without one; returns updated/failed counts"""
    updated = 0
    failed = 0

    async with SessionLocal() as session:
        result = await session.execute(
            select(UserModel.id, UserModel.username).where(UserModel.referral_code.is_(None))
        )
        users = result.all()

        if not users:
            logger.info("No users without referral codes")
            return {"updated": 0, "failed": 0}

        logger.info(f"Found {len(users)} users without referral codes")

        for user_id, username in users:
            try:
                code = await get_referral_code(user_id, session)
            except HTTPException as e:
                failed += 1
                logger.error(f"Could not assign a referral code to {username}: {e.detail}")
                continue
            updated += 1
            logger.info(f"Added referral code {code} to user {username}")

    logger.info(f"Updated {updated} users with referral codes ({failed} failed)")
    return {"updated": updated, "failed": failed}


async def main():
    logger.info("Starting referral code backfill...")
    try:
        summary = await backfill_referral_codes()
        logger.info("=" * 50)
        logger.info(f"Users updated: {summary['updated']}")
        logger.info(f"Users failed: {summary['failed']}")
        logger.info("=" * 50)
    except Exception as e:
        logger.error(f"Backfill failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    asyncio.run(main())
