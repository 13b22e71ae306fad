from utils.utils import get_secret

# Postgres
POSTGRES_USER = get_secret("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = get_secret("POSTGRES_PASSWORD", "postgres")
POSTGRES_HOST = get_secret("POSTGRES_HOST", "localhost")
POSTGRES_PORT = get_secret("POSTGRES_PORT", "5432")
POSTGRES_DB = get_secret("POSTGRES_DB", "transfers")
SQL_ECHO = (get_secret("SQL_ECHO", "false") or "false").lower() == "true"

# Redis
REDIS_HOST = get_secret("REDIS_HOST", "localhost")
REDIS_PORT = get_secret("REDIS_PORT", "6379")
REDIS_DB = get_secret("REDIS_DB", "0")
REDIS_PASSWORD = get_secret("REDIS_PASSWORD", "")

# RabbitMQ (taskiq broker)
RABBITMQ_USER = get_secret("RABBITMQ_USER", "guest")
RABBITMQ_PASSWORD = get_secret("RABBITMQ_PASSWORD", "guest")
RABBITMQ_HOST = get_secret("RABBITMQ_HOST", "localhost")
RABBITMQ_PORT = get_secret("RABBITMQ_PORT", "5672")

# External services
MAPBOX_TOKEN = get_secret("MAPBOX_TOKEN")
OSRM_URL = get_secret("OSRM_URL", "https://router.project-osrm.org")
HTTP_TIMEOUT_SECONDS = float(get_secret("HTTP_TIMEOUT_SECONDS", "5") or 5)

# Matching
IDLE_DRIVER_LIMIT = int(get_secret("IDLE_DRIVER_LIMIT", "5") or 5)
DRIVER_AVAILABLE_STATUS = "available"

# Wizard session snapshots, seconds
WIZARD_STATE_TTL = int(get_secret("WIZARD_STATE_TTL", "86400") or 86400)
