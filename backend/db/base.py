from db.session import Base, engine
from db.models.user import User  # noqa: F401
from db.models.referral import Referral  # noqa: F401
from db.models.notification import Notification  # noqa: F401
from db.models.badge import UserBadge  # noqa: F401
import logging

logger = logging.getLogger(__name__)


async def initialize_database():
    """Create any missing tables.

    Existing tables are left alone; a users table that predates referral codes
    needs the referral_code column added by hand, then backfill_referral_codes.py.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready: {', '.join(sorted(Base.metadata.tables))}")
