# app/exceptions.py
"""
Typed errors raised by the zone / report / schedule engine.
The HTTP layer (app/main.py) maps each one to a response; services never swallow them.
"""


class WasteEngineError(Exception):
    """Base class for every engine error."""


class NotFound(WasteEngineError):
    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidTransition(WasteEngineError):
    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(f"{entity} cannot go from '{current}' to '{target}'")


class AlreadyInState(WasteEngineError):
    """Idempotent no-op: the requested transition is already satisfied."""

    def __init__(self, entity: str, state: str):
        self.entity = entity
        self.state = state
        super().__init__(f"{entity} is already '{state}'")


class InvalidAssignee(WasteEngineError):
    def __init__(self, user_id, role: str):
        self.user_id = user_id
        self.role = role
        super().__init__(f"User {user_id} has role '{role}', only active collectors can be assigned")


class ConcurrencyConflict(WasteEngineError):
    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"{operation} gave up after {attempts} conflicting attempts")
