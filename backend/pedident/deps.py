from fastapi import HTTPException, Request, status

from pedident.services.charting_registry import ChartingSessionRegistry


def get_charting_registry(request: Request) -> ChartingSessionRegistry:
    registry = getattr(request.app.state, "charting_registry", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Charting is not available"
        )
    return registry
