"""Lazy record generators and backpressure-aware response writers."""
