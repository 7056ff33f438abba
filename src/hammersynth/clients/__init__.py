"""
API clients for external services.

Provides a client for the BV-BRC genome repository.
"""

from hammersynth.clients.bvbrc import BVBRCClient, GenomeDetail

__all__ = [
    "BVBRCClient",
    "GenomeDetail",
]
