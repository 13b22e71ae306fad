from .domain import WizardSnapshot, WizardStateRepository
from redis.asyncio import Redis
import re
import logging
from typing import Optional
from pydantic import ValidationError
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError
from db.redis_db import redis_client as connection
import config.conf as conf


logger = logging.getLogger(__name__)

class RedisState(WizardStateRepository):

    def __init__(self, session_id: str, redis_client: Optional[Redis] = None, ttl: int = conf.WIZARD_STATE_TTL):
        self.redis = redis_client or connection
        self.key = self._validate_and_format_key(session_id)
        self.ttl = ttl


    def _validate_and_format_key(self, session_id: str) -> str:
        if not session_id or not isinstance(session_id, str):
            raise ValueError("session_id must be a non-empty string")

        # Sanitize session_id to prevent key injection
        sanitized = re.sub(r'[^a-zA-Z0-9_-]', '', session_id)
        if not sanitized:
            raise ValueError("session_id contains only invalid characters")

        return f"transfer:wizard:{sanitized}"

    async def get_state(self) -> WizardSnapshot:
        try:
            value = await self.redis.get(self.key)
            if value is None:
                logger.info(f"No wizard state found in Redis for key {self.key}")
                return WizardSnapshot()

            return WizardSnapshot.model_validate_json(value)

        except (ValidationError, ValueError) as e:
            logger.error(f"Data parsing error for key {self.key}: {e}")
            return WizardSnapshot()
        except (RedisError, RedisConnectionError) as e:
            logger.error(f"Redis error getting state for key {self.key}: {e}")
            return WizardSnapshot()


    async def set_state(self, state: WizardSnapshot) -> bool:
        try:
            result = await self.redis.setex(self.key, self.ttl, state.model_dump_json())
            return bool(result)
        except (RedisError, RedisConnectionError) as e:
            logger.error(f"Redis error setting state for key {self.key}: {e}")
            return False

    async def clear(self) -> bool:
        try:
            result = await self.redis.delete(self.key)
            return bool(result)  # True if a key was deleted
        except (RedisError, RedisConnectionError) as e:
            logger.exception(f"Redis error deleting key {self.key}: {e}")
            return False
