"""Core module - Configuration, activity state and session orchestration."""
