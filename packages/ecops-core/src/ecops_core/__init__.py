"""
Core components for erasure-coded cluster operations.

This package provides the storage-agnostic parts of ecops:

- Connection and ssh configuration
- HTTP client construction with bounded timeouts
- Host health polling
- Remote maintenance commands over ssh
- Hostfile artifacts
- The ecops command line
"""

__version__ = "0.1.0"
