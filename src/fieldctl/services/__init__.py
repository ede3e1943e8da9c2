"""Service layer — validation engines, form sessions, and CLI facades.

Services may import from the domain layer.
They must never import from commands or output.
"""
