"""Core components: configuration, logging, run state and the browser engine."""
