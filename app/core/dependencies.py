from fastapi import Request

from app.services.visibility_poller import VisibilityPoller


def get_poller(request: Request) -> VisibilityPoller:
    """The process-wide poller built at startup (holds the fetcher and the per-brand locks)."""
    return request.app.state.poller
