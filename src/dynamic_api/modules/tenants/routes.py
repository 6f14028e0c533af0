"""Tenant provisioning API routes."""

from fastapi import APIRouter, Request, status

from .schemas import ProvisionRequest, ProvisionResponse, ReconcileRequest
from .services import ProvisionerSvc


router = APIRouter(prefix="/initialize", tags=["tenants"])


@router.post(
    "",
    response_model=ProvisionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Provision tenant",
    description=(
        "Create an isolated tenant database, an account that owns it, "
        "and the tenant's initial settings document."
    ),
)
async def provision_tenant(
    data: ProvisionRequest,
    provisioner: ProvisionerSvc,
    request: Request,
) -> ProvisionResponse:
    """Provision a new tenant."""
    request.state.tenant_id = data.tenant_id
    await provisioner.provision(
        tenant_id=data.tenant_id,
        username=data.username,
        secret=data.password,
        initial_settings=data.initial_settings,
    )
    return ProvisionResponse(msg="created")


@router.post(
    "/{tenant_id}/retry",
    response_model=ProvisionResponse,
    summary="Reconcile tenant",
    description="Finish provisioning for a tenant whose earlier attempt failed part-way.",
)
async def reconcile_tenant(
    tenant_id: str,
    data: ReconcileRequest,
    provisioner: ProvisionerSvc,
    request: Request,
) -> ProvisionResponse:
    """Retry the store side of provisioning."""
    request.state.tenant_id = tenant_id
    await provisioner.reconcile(tenant_id, initial_settings=data.initial_settings)
    return ProvisionResponse(msg="reconciled")
