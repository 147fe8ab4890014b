"""Response envelopes, S3 storage and MongoDB repositories for a medical record API."""

__version__ = "0.1.0"