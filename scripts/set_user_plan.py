"""
Script to move a user to another plan (free, trial, pro, admin).
Run: python -m scripts.set_user_plan user@example.com pro
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from recode.db.session import SessionLocal
from recode.db.models.user import User
from recode.core.plan_limits import SUPPORTED_PLANS
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_user_plan(email: str, plan: str) -> bool:
    """Create or update a user so they are on the given plan."""
    if plan not in SUPPORTED_PLANS:
        logger.error(f"Unknown plan '{plan}'. Use one of: {', '.join(SUPPORTED_PLANS)}")
        return False

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()

        if not user:
            logger.info(f"Creating new user: {email}")
            user = User(email=email.lower(), username=email.split("@")[0])
            db.add(user)
        else:
            logger.info(f"Found existing user: {email} (ID: {user.id}, plan: {user.plan})")

        user.plan = plan
        db.commit()
        logger.info(f"Successfully set user {email} to {plan} plan")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python -m scripts.set_user_plan <email> <plan>")
        sys.exit(2)

    email, plan = sys.argv[1], sys.argv[2].lower()
    if set_user_plan(email, plan):
        print(f"\n[SUCCESS] User {email} is now on the {plan} plan")
    else:
        print(f"\n[ERROR] Failed to update user {email}")
        sys.exit(1)
