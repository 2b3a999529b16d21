"""Process-level workbench state shared by the MCP tools.

The server holds one :class:`WorkbenchSession`. Tools resolve it through
:func:`get_session` unless a session is passed explicitly, which is how the
tests run them against a scripted backend.
"""

import logging
import threading

from workbench.assist import ConfigAssistant
from workbench.generation import GenerationOrchestrator
from workbench.workspace import Workspace

logger = logging.getLogger(__name__)


class WorkbenchSession:
    """Workspace plus the services that act on it.

    The orchestrator and assistant are created on first use so that a
    session can be inspected without any provider credentials.
    """

    def __init__(
        self,
        workspace: Workspace | None = None,
        orchestrator: GenerationOrchestrator | None = None,
        assistant: ConfigAssistant | None = None,
    ):
        self.workspace = workspace or Workspace()
        self._orchestrator = orchestrator
        self._assistant = assistant
        self._lock = threading.Lock()

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        with self._lock:
            if self._orchestrator is None:
                self._orchestrator = GenerationOrchestrator(self.workspace)
            return self._orchestrator

    @property
    def assistant(self) -> ConfigAssistant:
        with self._lock:
            if self._assistant is None:
                self._assistant = ConfigAssistant()
            return self._assistant

    def close(self) -> None:
        if self._orchestrator is not None:
            self._orchestrator.shutdown(wait=False)


_SESSION: WorkbenchSession | None = None
_SESSION_LOCK = threading.Lock()


def get_session() -> WorkbenchSession:
    """The process-level session, created on first use."""
    global _SESSION
    with _SESSION_LOCK:
        if _SESSION is None:
            _SESSION = WorkbenchSession()
            logger.info("Created workbench session")
        return _SESSION


def reset_session(session: WorkbenchSession | None = None) -> WorkbenchSession:
    """Replace the process-level session, closing the previous one."""
    global _SESSION
    with _SESSION_LOCK:
        if _SESSION is not None:
            _SESSION.close()
        _SESSION = session or WorkbenchSession()
        return _SESSION


__all__ = ["WorkbenchSession", "get_session", "reset_session"]
