"""Gateway between a Speeduino-style ECU serial link and web, TCP and in-memory display clients."""

__version__ = "0.1.0"