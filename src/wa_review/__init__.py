"""Well-Architected review of Terraform source and plan snapshots."""

__version__ = "0.1.0"
