"""WebSocket broadcasting and the log directory watcher."""
