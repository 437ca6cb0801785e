"""Decoder and MCP server for the Aerotenna uLanding radar altimeter."""

from .rangefinder import ULandingRangefinder

__version__ = "0.1.0"
