"""Drive a test-driven development loop with language-model roles."""

__version__ = "0.1.0"
