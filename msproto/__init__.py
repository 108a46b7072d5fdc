"""Encoder and decoder for the packets of a binary instant-messaging protocol."""

__version__ = "0.1.0"