"""Domain layer - playback logic built on the core layer."""
