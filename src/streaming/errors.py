# src/streaming/errors.py - v1
"""Streaming exception hierarchy."""

from __future__ import annotations


class StreamError(Exception):
    """Base class for failures while streaming a response body."""


class TransportClosedError(StreamError):
    """The client went away; the transport accepts no more chunks."""
