"""Run JavaScript/TypeScript fragments under node with mocked dependencies."""

__version__ = "0.1.0"
