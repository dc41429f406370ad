"""Room domain services: identity, lifecycle, rounds, scoring and words.

Socket handlers and HTTP routes import from here; transport concerns stay
out of this package. Every public operation runs as one transaction and
raises ``crazyemoji.errors.RoomError`` subclasses for expected failures.
"""
