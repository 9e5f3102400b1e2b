"""
Shared utilities for the Event Planner CRM backend.

- logging_config: Structured logging setup
- passwords: PBKDF2 password hashing
- client_ip: Client address extraction behind proxies
- websocket: Real-time connection registry
"""
