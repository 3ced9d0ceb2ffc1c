"""User service for owner access and learner profiles."""
import logging
from typing import Iterable, List, Optional

from linguamentor.config import ProfileSettings
from linguamentor.errors import InvalidArgument, Unauthorized
from linguamentor.models.models import UserProfile
from linguamentor.services.storage import Storage

# Configure logging
logger = logging.getLogger(__name__)


class UserService:
    """Service for managing the owner allow-list and learner profiles."""

    def __init__(self, storage: Storage, owner_ids: Iterable[int]):
        """Initialize the service with storage and the allowed Telegram IDs."""
        self.storage = storage
        self.owner_ids = frozenset(str(owner_id) for owner_id in owner_ids)

    def is_owner(self, user_id) -> bool:
        return user_id is not None and str(user_id) in self.owner_ids

    def ensure_owner(self, user_id) -> str:
        """Return the user ID as text, or raise if the caller is not an owner."""
        if user_id is None or str(user_id) == "":
            raise InvalidArgument("'userId' is required")
        if not self.is_owner(user_id):
            logger.warning(f"Rejected request from user {user_id}")
            raise Unauthorized(f"User {user_id} is not allowed")
        return str(user_id)

    async def get_profile(self, user_id) -> Optional[UserProfile]:
        """Get the profile of an owner."""
        return await self.storage.get_user_profile(self.ensure_owner(user_id))

    async def seed_profiles(self, profile: ProfileSettings) -> List[UserProfile]:
        """Create or update the profile of every owner."""
        profiles = []
        for user_id in sorted(self.owner_ids):
            logger.info(f"Seeding profile for user {user_id}")
            profiles.append(
                await self.storage.upsert_user_profile(
                    user_id,
                    name=profile.name,
                    level=profile.level,
                    goals=profile.goals,
                    weak_points=list(profile.weak_points),
                )
            )
        return profiles
