import asyncio
import redis.asyncio as redis
import logging
import config.conf as conf

logger = logging.getLogger(__name__)

# Example: redis://:your_strong_password@redis:6379/0
redis_url = f'redis://:{conf.REDIS_PASSWORD}@{conf.REDIS_HOST}:{conf.REDIS_PORT}/{conf.REDIS_DB}'

# Create the pool directly from the URL
pool = redis.ConnectionPool.from_url(
    redis_url,
    decode_responses=True,
    socket_connect_timeout=5,
    socket_timeout=5,
    retry_on_timeout=True,
    health_check_interval=30,
)


redis_client = redis.Redis(connection_pool=pool)

async def check_redis_connection():
    """Test connection to Redis and log if it fails."""
    try:
        pong = await redis_client.ping()
        if pong:
            logger.info("Connected to Redis successfully.")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise  # Re-raise so the app fails fast instead of silently continuing

if __name__ == "__main__":
    asyncio.run(check_redis_connection())
