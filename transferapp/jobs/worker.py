from typing import Protocol, Any
from taskiq_aio_pika import AioPikaBroker
import config.conf as conf

class HasKiq(Protocol):
    def kiq(self, *args: Any, **kwargs: Any) -> Any: ...

rabbitmq_url = f"amqp://{conf.RABBITMQ_USER}:{conf.RABBITMQ_PASSWORD}@{conf.RABBITMQ_HOST}:{conf.RABBITMQ_PORT}"

# Define the broker
broker = AioPikaBroker(rabbitmq_url)


# Import task after broker to avoid circular imports
from jobs.task import _notify_booking_created_task


notify_booking_created_task: HasKiq = broker.task(
    _notify_booking_created_task,
    retry_count=5,
    retry_delay=10,
)
