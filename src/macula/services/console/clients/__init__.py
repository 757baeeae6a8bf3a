"""
Clients package for the operator console.

Contains the NATS topic bridge.
"""

from .nats_bridge import SUBJECT_DECODERS, TopicBridge

__all__ = ["SUBJECT_DECODERS", "TopicBridge"]
