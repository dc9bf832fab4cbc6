"""HTTP and WebSocket API for the Whatswho service."""
