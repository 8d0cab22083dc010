"""Room domain services: shared timers, live membership and room content.

Imported by HTTP routes and socket handlers, keeping transport concerns
separated from the timer and membership bookkeeping.
"""
