"""Vendor Routes — profile, products, orders, analytics, payments, API keys, transaction
reports and support tickets.

Invariants:
    - Every route acts on the caller's own vendor profile (resolved from the token or key)
    - /transactions/report accepts X-API-Key (vendor websites) or a vendor JWT
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.dependencies import (
    get_current_vendor, get_payment_verifier, get_reporting_vendor,
)
from awoof.api.responses import success
from awoof.core.domain_types import ProductStatus, TicketStatus, TransactionStatus
from awoof.core.repository_protocols import PaymentVerifier
from awoof.infrastructure.database import get_db
from awoof.models.vendor import Vendor
from awoof.schemas.catalog import ProductCreate, ProductUpdate
from awoof.schemas.payment import (
    PaymentMethodUpdate, PaystackSubaccountUpdate, PayoutSettingsUpdate,
    ReportTransactionRequest,
)
from awoof.schemas.support import TicketReply, VendorTicketCreate
from awoof.schemas.vendor import (
    CompleteRegistrationRequest, OrderStatusUpdate, VendorProfileUpdate,
)
from awoof.services.catalog_service import VendorProductHandlers
from awoof.services.support_desk import VENDOR_DESK, SupportDesk
from awoof.services.transaction_reporting import TransactionReporter
from awoof.services.vendor_accounts import VendorProfileHandlers
from awoof.services.vendor_payments import PaymentHandlers
from awoof.services.vendor_sales import OrderHandlers

router = APIRouter(prefix="/api/v1/vendors", tags=["vendors"])


def get_products(
    vendor: Vendor = Depends(get_current_vendor), db: AsyncSession = Depends(get_db),
) -> VendorProductHandlers:
    return VendorProductHandlers(db, vendor)


def get_payments(
    vendor: Vendor = Depends(get_current_vendor), db: AsyncSession = Depends(get_db),
) -> PaymentHandlers:
    return PaymentHandlers(db, vendor)


def get_profile_handlers(
    vendor: Vendor = Depends(get_current_vendor), db: AsyncSession = Depends(get_db),
) -> VendorProfileHandlers:
    return VendorProfileHandlers(db, vendor)


def get_orders(
    vendor: Vendor = Depends(get_current_vendor), db: AsyncSession = Depends(get_db),
) -> OrderHandlers:
    return OrderHandlers(db, vendor)


def get_support_desk(
    vendor: Vendor = Depends(get_current_vendor), db: AsyncSession = Depends(get_db),
) -> SupportDesk:
    return SupportDesk(db, VENDOR_DESK, vendor.id, vendor.user_id)


# ─── Products ────────────────────────────────────────────────────

@router.get("/products")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: ProductStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=255),
    products: VendorProductHandlers = Depends(get_products),
):
    data = await products.list_products(
        page, limit, status_filter.value if status_filter else None, search,
    )
    return success(data, "Products retrieved successfully")


@router.get("/products/{product_id}")
async def get_product(product_id: UUID, products: VendorProductHandlers = Depends(get_products)):
    return success(await products.get(product_id), "Product retrieved successfully")


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate, products: VendorProductHandlers = Depends(get_products),
):
    return success(await products.create(body), "Product created successfully")


@router.put("/products/{product_id}")
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    products: VendorProductHandlers = Depends(get_products),
):
    return success(await products.update(product_id, body), "Product updated successfully")


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: UUID, products: VendorProductHandlers = Depends(get_products),
):
    await products.delete(product_id)
    return success(None, "Product deleted successfully")


# ─── Payments ────────────────────────────────────────────────────

@router.get("/payment/settings")
async def payment_settings(payments: PaymentHandlers = Depends(get_payments)):
    return success(await payments.settings(), "Payment settings retrieved successfully")


@router.put("/payment/payout-settings")
async def update_payout_settings(
    body: PayoutSettingsUpdate, _vendor: Vendor = Depends(get_current_vendor),
):
    return success(
        {"payoutSettings": body.model_dump(by_alias=True)},
        "Payout settings updated successfully",
    )


@router.get("/payment/history")
async def payment_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: TransactionStatus | None = Query(None, alias="status"),
    payments: PaymentHandlers = Depends(get_payments),
):
    data = await payments.history(page, limit, status_filter.value if status_filter else None)
    return success(data, "Payment history retrieved successfully")


@router.get("/payment/commission-summary")
async def commission_summary(payments: PaymentHandlers = Depends(get_payments)):
    return success(
        await payments.commission_summary(), "Commission summary retrieved successfully",
    )


@router.put("/payment/integration")
async def update_payment_method(
    body: PaymentMethodUpdate, payments: PaymentHandlers = Depends(get_payments),
):
    data = await payments.update_payment_method(body.payment_method)
    return success(data, "Payment method updated successfully")


@router.put("/payment/paystack-subaccount")
async def update_paystack_subaccount(
    body: PaystackSubaccountUpdate, payments: PaymentHandlers = Depends(get_payments),
):
    data = await payments.update_paystack_subaccount(body.paystack_subaccount_code.strip())
    return success(data, "Paystack subaccount updated successfully")


@router.post("/payment/api-key", status_code=status.HTTP_201_CREATED)
async def generate_api_key(payments: PaymentHandlers = Depends(get_payments)):
    return success(await payments.generate_api_key(), "API key generated successfully")


@router.get("/payment/api-key")
async def api_key_info(payments: PaymentHandlers = Depends(get_payments)):
    data = await payments.api_key_info()
    if not data["hasApiKey"]:
        return success(data, "No API key found")
    return success(data, "API key retrieved successfully")


# ─── Transaction reporting ───────────────────────────────────────

@router.post("/transactions/report", status_code=status.HTTP_201_CREATED)
async def report_transaction(
    body: ReportTransactionRequest,
    vendor: Vendor = Depends(get_reporting_vendor),
    verifier: PaymentVerifier = Depends(get_payment_verifier),
    db: AsyncSession = Depends(get_db),
):
    data = await TransactionReporter(db, vendor, verifier).report(body)
    return success(data, "Transaction reported successfully")


# ─── Profile ─────────────────────────────────────────────────────

@router.get("/profile")
async def get_profile(profile: VendorProfileHandlers = Depends(get_profile_handlers)):
    return success(await profile.get(), "Vendor profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    body: VendorProfileUpdate, profile: VendorProfileHandlers = Depends(get_profile_handlers),
):
    return success(await profile.update(body), "Vendor profile updated successfully")


@router.post("/complete-registration")
async def complete_registration(
    body: CompleteRegistrationRequest,
    profile: VendorProfileHandlers = Depends(get_profile_handlers),
):
    data = await profile.complete_registration(body)
    return success(data, "Vendor registration completed successfully")


# ─── Orders and analytics ────────────────────────────────────────

@router.get("/orders")
async def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: TransactionStatus | None = Query(None, alias="status"),
    search: str | None = Query(None, max_length=255),
    orders: OrderHandlers = Depends(get_orders),
):
    data = await orders.list_orders(
        page, limit, status_filter.value if status_filter else None, search,
    )
    return success(data, "Orders retrieved successfully")


@router.get("/orders/{order_id}")
async def get_order(order_id: UUID, orders: OrderHandlers = Depends(get_orders)):
    return success(await orders.get_order(order_id), "Order retrieved successfully")


@router.put("/orders/{order_id}/status")
async def update_order_status(
    order_id: UUID, body: OrderStatusUpdate, orders: OrderHandlers = Depends(get_orders),
):
    data = await orders.update_status(order_id, body.status)
    return success(data, "Order status updated successfully")


@router.get("/analytics")
async def analytics(orders: OrderHandlers = Depends(get_orders)):
    return success(await orders.analytics(), "Analytics retrieved successfully")


# ─── Support ─────────────────────────────────────────────────────

@router.post("/support-tickets", status_code=status.HTTP_201_CREATED)
async def create_support_ticket(
    body: VendorTicketCreate, desk: SupportDesk = Depends(get_support_desk),
):
    return success(await desk.create(body), "Support ticket created successfully")


@router.get("/support-tickets")
async def list_support_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: TicketStatus | None = Query(None, alias="status"),
    desk: SupportDesk = Depends(get_support_desk),
):
    data = await desk.list_tickets(page, limit, status_filter.value if status_filter else None)
    return success(data, "Support tickets retrieved successfully")


@router.get("/support-tickets/{ticket_id}")
async def get_support_ticket(ticket_id: UUID, desk: SupportDesk = Depends(get_support_desk)):
    return success(await desk.get_ticket(ticket_id), "Support ticket retrieved successfully")


@router.post("/support-tickets/{ticket_id}/responses", status_code=status.HTTP_201_CREATED)
async def reply_support_ticket(
    ticket_id: UUID, body: TicketReply, desk: SupportDesk = Depends(get_support_desk),
):
    return success(await desk.reply(ticket_id, body.message), "Response added successfully")
