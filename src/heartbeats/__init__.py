# ABOUTME: Heartbeats - a dead man's switch for periodic jobs
# ABOUTME: Tracks pings per named heartbeat and notifies when one goes missing

__version__ = "0.1.0"
