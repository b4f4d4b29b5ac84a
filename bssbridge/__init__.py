"""
bssbridge - Command mediation queue

Decouples a command producer (an automated monitoring script) from a
polling mobile client. The producer submits kick/ban commands, the client
polls for the oldest pending one and acknowledges it when done.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- queue: In-memory command queue engine and expiration sweeper
- auth: Static shared-secret gate
- api: REST API interface (models and routes)
- config: Server configuration
"""

__version__ = "1.0.0"
