"""
Services layer - business logic goes here, not in routes.

- lifecycle: pure vote -> state transitions
- verification_service: one-vote-per-user admission control
- incident_service / settings_service: report and preference handling
- proximity: live-position alerting
- storage: pluggable persistence backends
"""
