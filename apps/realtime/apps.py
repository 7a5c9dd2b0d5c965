import logging

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)


class RealtimeConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.realtime'
    label = 'realtime'

    broadcaster = None

    def ready(self):
        from statesync.brokers import create_broker
        from .broadcaster import EventBroadcaster

        url = getattr(settings, 'REALTIME_BROKER_URL', 'memory://')
        self.broadcaster = EventBroadcaster(create_broker(url))
        logger.info('Realtime broadcaster ready (%s)', url.split('@')[-1])
