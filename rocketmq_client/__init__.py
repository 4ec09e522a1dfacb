"""Message model, wire encoding, name server resolvers, queue selectors and logging for a messaging client."""

__version__ = "2.0.0"