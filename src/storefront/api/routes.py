"""FastAPI routes for the storefront back office and checkout."""

import json

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.api.dependencies import get_principal
from storefront.api.schemas import (
    CreateOfferRequest,
    CreateTaskRequest,
    OfferIdResponse,
    OfferSummary,
    OrderPlacedResponse,
    PlaceOrderRequest,
    RedeemOfferRequest,
    RedeemOfferResponse,
    StartWorkflowRequest,
    TaskIdResponse,
    UpdateOrderRequest,
    UpdateRefundRequest,
    UpdateTaskRequest,
    ValidateOfferRequest,
    ValidateOfferResponse,
)
from storefront.auth import Principal, ensure_can_view_order, require_superuser
from storefront.errors import AuthorizationError, ConflictError
from storefront.listing import get_order_cache
from storefront.listing.queries import list_orders
from storefront.offer.management import CreateOffer
from storefront.offer.quoting import available_offers, quote_offer
from storefront.offer.redeem import RedeemOffer
from storefront.offer.validation import Customer
from storefront.order.order import Order, items_subtotal
from storefront.order.placement import PlaceOrder
from storefront.order.refund import UpdateRefund
from storefront.order.update import UpdateOrder
from storefront.task.assignment import CreateTask, DeleteTask
from storefront.task.task import Task
from storefront.task.update import UpdateTask
from storefront.workflow import get_workflow
from storefront.workflow.kickoff import RepairWorkflow, StartWorkflow

logger = structlog.get_logger(__name__)


def _actor(principal: Principal) -> dict:
    return {"actor_id": principal.id, "actor_role": principal.role.value}


def _task_payload(task: dict) -> dict:
    payload = {key: value for key, value in task.items() if key not in ("task_type", "step_key")}
    payload["type"] = task["task_type"]
    return payload


def _process(command):
    """Process ``command`` synchronously and return the handler's result.

    A handler whose unit of work lost a concurrent commit yields no result.
    """
    result = current_domain.process(command, asynchronous=False)
    if result is None:
        raise ConflictError("The resource was modified concurrently; retry the request")
    return result


def _process_order_write(command):
    """Process a command that may touch orders, then drop the listing cache.

    The repository already invalidated when it stored the order; doing it again
    once the unit of work has committed keeps a concurrent listing from caching
    the pre-commit state.
    """
    result = _process(command)
    get_order_cache().invalidate()
    return result


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


def _redeem_after_checkout(offer_id: str, order_id: str, customer: Customer) -> bool:
    """Consume the offer for a placed order; failures never undo the order."""
    try:
        outcome = _process(
            RedeemOffer(
                offer_id=offer_id,
                order_id=order_id,
                customer_email=customer.email,
                customer_id=customer.id,
            )
        )
    except Exception as exc:
        logger.error("offer_redemption_failed", offer_id=offer_id, order_id=order_id, error=str(exc))
        return False
    return outcome["redeemed"]


@order_router.post("", status_code=201, response_model=OrderPlacedResponse)
async def place_order(body: PlaceOrderRequest) -> OrderPlacedResponse:
    """Checkout: create a pending order, applying a re-validated offer if one is given."""
    items = [item.model_dump() for item in body.items]
    customer = Customer.of(body.customer.email, body.user_id)

    offer_id, discount = None, 0.0
    if body.offer_id or body.offer_code:
        offer, quote = quote_offer(
            items_subtotal(items),
            offer_id=body.offer_id,
            offer_code=body.offer_code,
            customer=customer,
        )
        offer_id, discount = str(offer.id), quote.discount

    command = PlaceOrder(
        customer_name=body.customer.name,
        customer_email=body.customer.email,
        customer_phone=body.customer.phone,
        shipping_address=json.dumps(body.shipping_address.model_dump()),
        items=json.dumps(items),
        shipping=body.shipping,
        discount=discount,
        payment_method=body.payment_method,
        payment_status=body.payment_status,
        payment_reference=body.payment_reference,
        offer_id=offer_id,
        user_id=body.user_id,
        notes=body.notes,
    )
    placed = _process_order_write(command)

    redeemed = False
    if offer_id is not None:
        redeemed = _redeem_after_checkout(offer_id, placed["order_id"], customer)
    return OrderPlacedResponse(**placed, discount=discount, offer_redeemed=redeemed)


@order_router.get("")
async def get_orders(
    status: str | None = None,
    assigned_to: str | None = None,
    limit: int | None = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    principal: Principal = Depends(get_principal),
) -> JSONResponse:
    """List orders from the read cache; ``status`` accepts a comma-separated list."""
    listing = list_orders(principal, status=status, assigned_to=assigned_to, limit=limit, offset=offset)
    ttl = int(get_order_cache().ttl_seconds)
    return JSONResponse(
        content=jsonable_encoder({"orders": listing.orders, "total": listing.total, "cached": listing.cache_hit}),
        headers={
            "X-Cache": "HIT" if listing.cache_hit else "MISS",
            "Cache-Control": f"private, max-age={ttl}",
        },
    )


@order_router.get("/{order_ref}")
async def get_order(order_ref: str, principal: Principal = Depends(get_principal)) -> JSONResponse:
    order = current_domain.repository_for(Order).get_by_reference(order_ref)
    tasks = current_domain.repository_for(Task).for_order(str(order.id))
    ensure_can_view_order(principal, order, tasks)
    return JSONResponse(
        content=jsonable_encoder(
            {"order": order.to_dict(), "tasks": [_task_payload(task.to_dict()) for task in tasks]}
        )
    )


@order_router.put("/{order_ref}")
async def update_order(
    order_ref: str,
    body: UpdateOrderRequest,
    principal: Principal = Depends(get_principal),
) -> JSONResponse:
    """Partial update; ``assigned_to`` set to null or blank clears the assignment."""
    assigned_to, unassign = None, False
    if "assigned_to" in body.model_fields_set:
        assigned_to = (body.assigned_to or "").strip() or None
        unassign = assigned_to is None

    command = UpdateOrder(
        order_ref=order_ref,
        status=body.status,
        assigned_to=assigned_to,
        unassign=unassign,
        payment_status=body.payment_status,
        tracking_number=body.tracking_number,
        courier_company=body.courier_company,
        notes=body.notes,
        **_actor(principal),
    )
    order = _process_order_write(command)
    return JSONResponse(content=jsonable_encoder({"order": order}))


@order_router.put("/{order_ref}/refund")
async def update_refund(
    order_ref: str,
    body: UpdateRefundRequest,
    principal: Principal = Depends(get_principal),
) -> JSONResponse:
    command = UpdateRefund(
        order_ref=order_ref,
        refund_status=body.refund_status,
        refund_id=body.refund_id,
        notes=body.notes,
        **_actor(principal),
    )
    order = _process_order_write(command)
    return JSONResponse(
        content=jsonable_encoder({"order": order, "message": f"Refund status updated to {body.refund_status}"})
    )


@order_router.get("/{order_ref}/refund")
async def get_refund(order_ref: str, principal: Principal = Depends(get_principal)) -> JSONResponse:
    require_superuser(principal, "Only superusers can view refunds")
    order = current_domain.repository_for(Order).get_by_reference(order_ref)
    return JSONResponse(
        content=jsonable_encoder(
            {
                "refund": {
                    "refund_status": order.refund_status,
                    "refund_id": order.refund_id,
                    "payment_method": order.payment_method,
                    "payment_status": order.payment_status,
                    "payment_reference": order.payment_reference,
                    "total": order.total,
                    "can_refund": order.can_refund,
                }
            }
        )
    )


@order_router.get("/{order_ref}/workflow")
async def get_workflow_progress(order_ref: str, principal: Principal = Depends(get_principal)) -> JSONResponse:
    order = current_domain.repository_for(Order).get_by_reference(order_ref)
    tasks = current_domain.repository_for(Task).for_order(str(order.id))
    ensure_can_view_order(principal, order, tasks)

    workflow = get_workflow()
    current = workflow.current_step(tasks)
    steps = []
    for step in workflow.steps:
        task = next((t for t in tasks if t.task_type == step.type), None)
        steps.append(
            {
                "type": step.type,
                "label": step.label,
                "order": step.order,
                "description": step.description,
                "completed": workflow.is_step_completed(step.type, tasks),
                "task_id": str(task.id) if task else None,
                "task_status": task.status if task else None,
            }
        )
    return JSONResponse(
        content={
            "order_id": str(order.id),
            "order_number": order.order_number,
            "status": order.status,
            "steps": steps,
            "current_step": current.type if current else None,
            "progress": workflow.progress(tasks),
        }
    )


@order_router.post("/{order_ref}/workflow", status_code=201)
async def start_workflow(
    order_ref: str,
    body: StartWorkflowRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    command = StartWorkflow(
        order_ref=order_ref,
        assigned_to=body.assigned_to,
        priority=body.priority,
        **_actor(principal),
    )
    return _process(command)


@order_router.post("/{order_ref}/workflow/repair")
async def repair_workflow(order_ref: str, principal: Principal = Depends(get_principal)) -> dict:
    """Re-run workflow advancement for an order whose automation was interrupted."""
    return _process_order_write(RepairWorkflow(order_ref=order_ref, **_actor(principal)))


# ---------------------------------------------------------------------------
# Task Router
# ---------------------------------------------------------------------------
task_router = APIRouter(prefix="/tasks", tags=["tasks"])


@task_router.get("")
async def get_tasks(
    order_id: str | None = None,
    assigned_to: str | None = None,
    status: str | None = None,
    principal: Principal = Depends(get_principal),
) -> JSONResponse:
    """Tasks newest first; workers only see their own."""
    if not principal.is_superuser:
        if assigned_to is not None and assigned_to != principal.id:
            raise AuthorizationError("Workers can only list their own tasks")
        assigned_to = principal.id
    tasks = current_domain.repository_for(Task).search(order_id=order_id, assigned_to=assigned_to, status=status)
    return JSONResponse(content=jsonable_encoder({"tasks": [_task_payload(t.to_dict()) for t in tasks]}))


@task_router.post("", status_code=201, response_model=TaskIdResponse)
async def create_task(body: CreateTaskRequest, principal: Principal = Depends(get_principal)) -> TaskIdResponse:
    if not (body.order_id and body.assigned_to and body.type):
        raise ValidationError({"task": ["Missing required fields"]})
    command = CreateTask(
        order_ref=body.order_id,
        task_type=body.type,
        assigned_to=body.assigned_to,
        priority=body.priority,
        notes=body.notes,
        **_actor(principal),
    )
    return TaskIdResponse(task_id=_process(command))


@task_router.get("/{task_id}")
async def get_task(task_id: str, principal: Principal = Depends(get_principal)) -> JSONResponse:
    task = current_domain.repository_for(Task).get(task_id)
    if not principal.is_superuser and task.assigned_to != principal.id:
        raise AuthorizationError("You can only view your own tasks")
    return JSONResponse(content=jsonable_encoder({"task": _task_payload(task.to_dict())}))


@task_router.put("/{task_id}")
async def update_task(
    task_id: str,
    body: UpdateTaskRequest,
    principal: Principal = Depends(get_principal),
) -> JSONResponse:
    """Update a task; completing it advances the order's workflow."""
    command = UpdateTask(
        task_id=task_id,
        status=body.status,
        assigned_to=body.assigned_to,
        priority=body.priority,
        notes=body.notes,
        **_actor(principal),
    )
    task = _process_order_write(command)
    return JSONResponse(content=jsonable_encoder({"task": _task_payload(task)}))


@task_router.delete("/{task_id}")
async def delete_task(task_id: str, principal: Principal = Depends(get_principal)) -> dict:
    current_domain.process(DeleteTask(task_id=task_id, **_actor(principal)), asynchronous=False)
    return {"status": "deleted"}


# ---------------------------------------------------------------------------
# Offer Router
# ---------------------------------------------------------------------------
offer_router = APIRouter(prefix="/offers", tags=["offers"])


@offer_router.post("", status_code=201, response_model=OfferIdResponse)
async def create_offer(body: CreateOfferRequest, principal: Principal = Depends(get_principal)) -> OfferIdResponse:
    command = CreateOffer(
        code=body.code,
        title=body.title,
        description=body.description,
        discount_type=body.discount_type,
        discount_value=body.discount_value,
        min_order_amount=body.min_order_amount,
        max_discount=body.max_discount,
        valid_from=body.valid_from,
        valid_until=body.valid_until,
        usage_limit=body.usage_limit,
        one_time_per_user=body.one_time_per_user,
        is_active=body.is_active,
        customer_emails=json.dumps(body.customer_emails) if body.customer_emails else None,
        customer_ids=json.dumps(body.customer_ids) if body.customer_ids else None,
        **_actor(principal),
    )
    return OfferIdResponse(offer_id=_process(command))


@offer_router.post("/validate", response_model=ValidateOfferResponse)
async def validate_offer(body: ValidateOfferRequest) -> ValidateOfferResponse:
    """Quote an offer for a checkout; never consumes it."""
    offer, quote = quote_offer(
        body.subtotal,
        offer_id=body.offer_id,
        offer_code=body.offer_code,
        customer=Customer.of(body.customer_email, body.customer_id),
    )
    return ValidateOfferResponse(offer=OfferSummary(**offer.to_summary()), discount=quote.discount)


@offer_router.get("/available")
async def get_available_offers(customer_email: str | None = None, customer_id: str | None = None) -> dict:
    offers = available_offers(Customer.of(customer_email, customer_id))
    return {"offers": [offer.to_summary() for offer in offers]}


@offer_router.post("/{offer_id}/redemptions", response_model=RedeemOfferResponse)
async def redeem_offer(offer_id: str, body: RedeemOfferRequest) -> RedeemOfferResponse:
    """Consume one use of an offer for a placed order; replays are no-ops."""
    command = RedeemOffer(
        offer_id=offer_id,
        order_id=body.order_id,
        customer_email=body.customer_email,
        customer_id=body.customer_id,
    )
    return RedeemOfferResponse(**_process(command))
