"""Auth context types."""

from typing import Any, Dict, Optional

from agentflow.core.exceptions import UnauthorizedException

# Verified (or dev-supplied) JWT claims
ContextData = Dict[str, Any]


class AuthContextStorage:
    """Per-request identity holder attached to ``request.state.auth``."""

    def __init__(self, data: Optional[ContextData] = None):
        self.data: ContextData = dict(data or {})

    @property
    def sub(self) -> Optional[str]:
        sub = self.data.get("sub")
        return str(sub) if sub not in (None, "") else None

    def check_sub(self) -> str:
        sub = self.sub
        if not sub:
            raise UnauthorizedException("UNAUTHORIZED", "No sub")
        return sub

    def __repr__(self) -> str:
        return f"<AuthContextStorage sub={self.sub!r}>"
