"""Live recomputation of aggregates from store change notifications."""

from networth.live.queue import KeyedBatchQueue
from networth.live.session import LiveSession, SessionStatus

__all__ = ["KeyedBatchQueue", "LiveSession", "SessionStatus"]
