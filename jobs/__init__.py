"""Background jobs: scheduled payout sweep, dramatiq actors, health server."""
