"""BuildTrack backend - tenant-isolated data access for construction management."""

__version__ = "0.1.0"
