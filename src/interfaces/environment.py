"""Execution environment protocol: call origin, time and atomic dispatch."""
from typing import Any, Protocol


class ExecutionEnvironment(Protocol):
    """Abstract interface for the environment contracts execute in.

    The environment is responsible for caller identity: a method invoked
    through ``at(address, sender)`` observes ``msg_sender == sender``.
    """

    @property
    def timestamp(self) -> int: ...

    @property
    def msg_sender(self) -> str: ...

    def register(self, contract: Any, label: str) -> str: ...

    def at(self, address: str, sender: str) -> Any: ...

    async def send_native(self, sender: str, to: str, amount: int) -> None: ...
