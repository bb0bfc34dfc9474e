"""
Application Layer

Contains use cases, command/query handlers, and application services.
This layer orchestrates domain objects and infrastructure to fulfill use cases.

Structure:
- commands/: Guild-facing queue operations
- queries/: Read-only reports (session statistics)
- services/: Session registry, access gate, queue store, preferences, playback engine
- interfaces/: Port interfaces for infrastructure adapters
"""
