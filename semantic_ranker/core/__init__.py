"""Core module for configuration, logging, exceptions, tracing and retry.

Patterns Applied:
- Pydantic Settings with SettingsConfigDict
- Custom namespaced exceptions (no builtin shadowing)
- One-time structlog / OpenTelemetry configuration
"""
