"""Echo-broadcast relay server for the chat widget.

Run it with ``chatlateral serve`` or any ASGI server pointed at
``chatlateral.relay.app:app``.
"""

from chatlateral.relay.app import app, create_app, router
from chatlateral.relay.manager import ConnectionManager

__all__ = ["ConnectionManager", "app", "create_app", "router"]
