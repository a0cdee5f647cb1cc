"""
Shared module package.

Contains cross-cutting concerns used across the application:
- Error handling and mapping
- Security middleware (headers, rate limiting, input sanitization)
- Logging configuration
"""
