"""
Event Grid payload handling.

Validates the envelope array and classifies the first event's data as a
subscription validation handshake or a blob created notification.
"""
