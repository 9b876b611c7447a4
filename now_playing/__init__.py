"""Periodic Spotify now-playing refresh."""
