"""Resource catalogue router: what can be granted, and the verb to action table."""

from fastapi import APIRouter, Depends

from workbench.api.deps import get_registry
from workbench.core.responses import send_response
from workbench.schemas.schemas import ResourceOut
from workbench.services.resource_service import ResourceRegistry

router = APIRouter(tags=["resources"])


@router.get("")
def list_resources(registry: ResourceRegistry = Depends(get_registry)):
    resources = [ResourceOut(**entry) for entry in registry.resources()]
    return send_response("Resources retrieved", resources)


@router.get("/allowed-http-method-actions")
def allowed_http_method_actions(registry: ResourceRegistry = Depends(get_registry)):
    return send_response("Allowed HTTP method actions retrieved", registry.allowed_method_actions())
