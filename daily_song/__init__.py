"""Daily song-guessing game server."""
