#!/usr/bin/env python3
"""Constants for peer links and node lifecycle.

These constants control reconnection, handshake timing and shutdown for
connections between nodes.
"""

# Default TCP port a node listens on.
DEFAULT_PORT: int = 3030

# Fixed delay between outbound connection attempts in seconds.
RECONNECT_DELAY: float = 1.0

# Seconds allowed for the hello/welcome exchange on a new connection.
HANDSHAKE_TIMEOUT: float = 10.0

# Upper bound in seconds for closing all connections on shutdown.
SHUTDOWN_GRACE: float = 5.0
