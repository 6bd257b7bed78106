import matplotlib

matplotlib.use("Agg")

import pytest
from loguru import logger

from clockwork.actions import ActionCatalog, ActionData, register_default_actions


@pytest.fixture(autouse=True)
def _quiet_logger():
    logger.remove()
    logger.configure(extra={"timestamp": "-"})
    yield
    logger.remove()


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def ogcd_catalog():
    """Built-in actions plus an off-GCD ability."""
    catalog = ActionCatalog()
    register_default_actions(catalog)
    catalog.register_action(
        ActionData(
            action_id="surge",
            name="Surge",
            cast_time=0,
            recast_time=0,
            animation_lock=70,
            mp_cost=0,
            off_gcd=True,
        )
    )
    return catalog
