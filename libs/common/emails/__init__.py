"""
GlowMart Email Package.

Modules:
- client: EmailClient for sending transactional emails via the
  Communications Service API

Templates live in services/communications_service/templates/. Other services
send email through EmailClient, never by importing templates directly.
"""
