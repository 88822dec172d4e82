"""Core robust estimation functionality."""
