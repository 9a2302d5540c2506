"""
Read Master progression service.

Achievements, XP and level progression with a server-authoritative store
and an optimistic client-side mirror.
"""
__version__ = "1.0.0"
