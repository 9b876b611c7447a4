"""Resume Gate - approve/deny resume requests through signed email links."""
