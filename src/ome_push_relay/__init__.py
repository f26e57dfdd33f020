"""Admission webhook that relays incoming OvenMediaEngine streams to RTMP targets."""

__version__ = "0.1.0"
