"""Shared dependencies for API endpoints."""

from fastapi import HTTPException

from ..relay_service import RelayService

# Global relay service instance
relay_service: RelayService | None = None


def get_relay_service() -> RelayService:
    """Get the relay service, raising an error if not available."""
    if not relay_service:
        raise HTTPException(status_code=503, detail="Relay service not available")
    return relay_service
