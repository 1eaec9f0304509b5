"""Database connector seam for warble.

The app connects its connector at startup and disconnects it at
shutdown. ``NullConnector`` is the default: it opens nothing and only
logs, standing in until a real document store is wired up::

    from warble.data import NullConnector

    app = App(connector=NullConnector("mongodb://localhost:27017/test"))
"""

from warble.data.connector import Connector, NullConnector

__all__ = [
    "Connector",
    "NullConnector",
]
