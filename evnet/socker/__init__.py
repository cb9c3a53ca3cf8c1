"""Length-prefixed JSON message framing, router, server and client."""

__all__ = ["framing", "message", "router", "client", "server"]