from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from app.core.config import settings
from app.routers import (
    audit_logs,
    automatic_rules,
    discount_codes,
    discount_settings,
    discounts,
    loyalty,
    organizations,
    seasonal_campaigns,
    volume_tiers,
)

OPENAPI_TAGS = [
    {
        "name": "Discounts",
        "description": "Evaluate and apply order discounts, and decide on approval requests.",
    },
    {"name": "Discount Codes", "description": "Create and manage promo codes and their usage."},
    {"name": "Automatic Rules", "description": "Rule-based discounts applied without a code."},
    {"name": "Loyalty", "description": "Loyalty program, member balances and point transactions."},
    {"name": "Volume Tiers", "description": "Tiered discounts by amount, quantity or area."},
    {"name": "Seasonal Campaigns", "description": "Time-boxed and recurring campaigns."},
    {"name": "Discount Settings", "description": "Stacking policy and approval limits."},
    {"name": "Organizations", "description": "Manage the organizations (tenants) of the service."},
    {"name": "Audit Logs", "description": "Query the audit trail of discount resources."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Discount engine API. Evaluates promo codes, automatic rules, loyalty, volume and "
        "seasonal discounts for an order, combines them under the organization's stacking "
        "policy and routes discounts above a requester's limit through approval."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count", "Idempotency-Replayed", "Retry-After"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(discounts.router, prefix="/v1/discounts", tags=["Discounts"])
app.include_router(discount_codes.router, prefix="/v1/discount_codes", tags=["Discount Codes"])
app.include_router(
    automatic_rules.router, prefix="/v1/automatic_rules", tags=["Automatic Rules"]
)
app.include_router(loyalty.router, prefix="/v1/loyalty", tags=["Loyalty"])
app.include_router(volume_tiers.router, prefix="/v1/volume_tiers", tags=["Volume Tiers"])
app.include_router(
    seasonal_campaigns.router, prefix="/v1/seasonal_campaigns", tags=["Seasonal Campaigns"]
)
app.include_router(
    discount_settings.router, prefix="/v1/discount_settings", tags=["Discount Settings"]
)
app.include_router(organizations.router, prefix="/v1/organizations", tags=["Organizations"])
app.include_router(audit_logs.router, prefix="/v1/audit_logs", tags=["Audit Logs"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
