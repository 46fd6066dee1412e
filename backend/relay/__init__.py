"""Live price relay: one upstream feed, many WebSocket subscribers."""
