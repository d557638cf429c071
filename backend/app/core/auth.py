from uuid import UUID

from fastapi import HTTPException, Request

from app.models.shared import DEFAULT_ORGANIZATION_ID


def get_current_organization(request: Request) -> UUID:
    """Resolve the tenant from the ``X-Organization-Id`` header.

    Requests without the header act on the default organization. Caller
    authentication happens upstream of this service.
    """
    org_id_header = request.headers.get("X-Organization-Id")
    if not org_id_header:
        return DEFAULT_ORGANIZATION_ID
    try:
        return UUID(org_id_header)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Organization-Id header") from None
