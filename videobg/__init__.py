"""
videobg - turn an MP4 upload into a shareable fullscreen background page.

This package contains the complete application:
- core: Framework-agnostic identifier scheme and publishing logic
- infrastructure: Object storage integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
