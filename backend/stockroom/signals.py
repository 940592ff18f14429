"""
Signal handlers for the stockroom project package.
"""
from django.core.signals import setting_changed
from django.dispatch import receiver
import logging

logger = logging.getLogger(__name__)


@receiver(setting_changed)
def reload_engine_settings(sender, setting, **kwargs):
    """
    Refresh the engine settings singleton when STOCKROOM is overridden,
    e.g. by ``override_settings`` in tests.
    """
    if setting != "STOCKROOM":
        return

    from .config import engine_settings

    engine_settings.reload()
    logger.info(f"Engine configuration updated: {engine_settings.as_dict()}")
