"""Remote library providers (Spotify)."""
