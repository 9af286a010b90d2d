"""Session Store — process-local registry of one WorkflowMachine per session."""

from devflow.oracle import OracleClient
from devflow.workflow import WorkflowMachine


class SessionStore:
    """Maps session ids to their machines. Nothing is shared between sessions."""

    def __init__(self, oracle_factory=OracleClient):
        self._oracle_factory = oracle_factory
        self._machines: dict[str, WorkflowMachine] = {}

    def get(self, session_id: str) -> WorkflowMachine:
        """Return the session's machine, creating a fresh one on first use."""
        if session_id not in self._machines:
            self._machines[session_id] = WorkflowMachine(self._oracle_factory())
        return self._machines[session_id]

    def reset(self, session_id: str) -> WorkflowMachine:
        """Replace the session's machine with a fresh one."""
        self._machines.pop(session_id, None)
        return self.get(session_id)

    def drop(self, session_id: str) -> None:
        self._machines.pop(session_id, None)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._machines

    def __len__(self) -> int:
        return len(self._machines)
