"""
Session Management for wizard connections

Keeps one UploadWizard per Socket.IO connection and closes wizards whose
client disconnected or went idle, so their preview handles are released.
"""

import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from .upload_wizard import UploadWizard, WizardListener


class WizardSession:
    """A wizard bound to one client"""

    def __init__(self, session_id: str, wizard: UploadWizard):
        self.session_id = session_id
        self.wizard = wizard
        self.created_at = datetime.now()
        self.last_updated = self.created_at

    def touch(self) -> None:
        self.last_updated = datetime.now()


class SessionManager:
    """Manages wizard sessions keyed by connection id"""

    def __init__(
        self,
        wizard_factory: Callable[[WizardListener], UploadWizard],
        session_timeout_minutes: int = 60
    ):
        """
        Initialize session manager.

        Args:
            wizard_factory: Builds a wizard reporting to the given listener
            session_timeout_minutes: Minutes of inactivity before a session expires
        """
        self.wizard_factory = wizard_factory
        self.sessions: Dict[str, WizardSession] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)
        self._lock = threading.Lock()

    def create_session(self, session_id: str, listener: WizardListener) -> UploadWizard:
        """
        Open a wizard for a new connection, replacing any previous one.

        Returns:
            The new UploadWizard
        """
        wizard = self.wizard_factory(listener)
        with self._lock:
            previous = self.sessions.pop(session_id, None)
            self.sessions[session_id] = WizardSession(session_id, wizard)
        if previous:
            previous.wizard.close()
        return wizard

    def get_session(self, session_id: str) -> Optional[UploadWizard]:
        """
        Get the wizard of a connection.

        Returns:
            UploadWizard if found and not expired, None otherwise
        """
        with self._lock:
            session = self.sessions.get(session_id)
            if session is None:
                return None

            # Check if session expired; a running upload keeps it alive
            if (
                datetime.now() - session.last_updated > self.session_timeout
                and not session.wizard.uploading
            ):
                del self.sessions[session_id]
                expired = session
            else:
                session.touch()
                return session.wizard

        expired.wizard.close()
        return None

    def close_session(self, session_id: str) -> bool:
        """
        End a session and release its previews.

        Returns:
            True if a session was closed
        """
        with self._lock:
            session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.wizard.close()
        return True

    def cleanup_expired_sessions(self) -> int:
        """
        Remove all expired sessions.

        Returns:
            Number of sessions cleaned up
        """
        now = datetime.now()
        with self._lock:
            expired = [
                session for session in self.sessions.values()
                if now - session.last_updated > self.session_timeout
                and not session.wizard.uploading
            ]
            for session in expired:
                del self.sessions[session.session_id]

        for session in expired:
            session.wizard.close()

        return len(expired)

    def get_session_count(self) -> int:
        """Get number of active sessions"""
        with self._lock:
            return len(self.sessions)
