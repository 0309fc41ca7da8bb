"""
simulation/errors.py

Exceptions raised across the engine's public boundary. Expected failure
modes (compile problems, unresolved probes) are returned as data; these
are reserved for broken wiring between collaborators.
"""


class EngineError(Exception):
    """Base class for engine invariant violations."""


class MissingCollaboratorError(EngineError):
    """A required collaborator (simulator worker, model) was not supplied."""
