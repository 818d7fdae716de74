from .names import HQ_PREFIX, PREFIX, deacon_session_name, mayor_session_name
from .tmux import SessionManager, Tmux

__all__ = ["HQ_PREFIX", "PREFIX", "SessionManager", "Tmux", "deacon_session_name", "mayor_session_name"]
