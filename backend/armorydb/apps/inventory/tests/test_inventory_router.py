from __future__ import annotations

import pytest
from fastapi import HTTPException, status
from pydantic import ValidationError

from armorydb.apps.inventory import router as inventory_router
from armorydb.apps.inventory import schemas as inventory_schemas
from armorydb.apps.inventory.errors import (
    InsufficientStockError,
    InvalidArgumentError,
    StorageFailureError,
    UnauthorizedError,
    to_http_exception,
)


def _route_map():
    return {(route.path, tuple(sorted(route.methods))) for route in inventory_router.router.routes}


def test_inventory_routes_registered():
    routes = _route_map()
    assert ("/purchases", ("POST",)) in routes
    assert ("/transfers", ("POST",)) in routes
    assert ("/assignments", ("POST",)) in routes
    assert ("/dashboard", ("GET",)) in routes
    assert ("/history", ("GET",)) in routes


def test_error_translation():
    assert to_http_exception(UnauthorizedError("no")).status_code == status.HTTP_403_FORBIDDEN
    assert to_http_exception(InvalidArgumentError("bad")).status_code == status.HTTP_400_BAD_REQUEST
    assert to_http_exception(InsufficientStockError("short")).status_code == status.HTTP_409_CONFLICT
    assert (
        to_http_exception(StorageFailureError("db")).status_code
        == status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    assert to_http_exception(InvalidArgumentError("bad")).detail == "bad"


def test_request_models_validate_quantity_and_type():
    with pytest.raises(ValidationError):
        inventory_schemas.PurchaseRequest(asset_id=1, base_id=1, quantity=0)
    with pytest.raises(ValidationError):
        inventory_schemas.AssignmentRequest(asset_id=1, base_id=1, quantity=1, type="LOSE")

    payload = inventory_schemas.AssignmentRequest.model_validate(
        {"asset_id": 1, "base_id": 1, "quantity": 2, "type": " expend "}
    )
    assert payload.type == "EXPEND"


def test_purchase_endpoint_reports_new_quantity(db_session, seeded):
    result = inventory_router.record_purchase(
        inventory_schemas.PurchaseRequest(asset_id=seeded.rifle.id, base_id=seeded.bravo.id, quantity=10),
        db=db_session,
        ctx=seeded.logistics_ctx,
    )
    assert result.message == "Purchase recorded successfully"
    assert result.quantities == {str(seeded.bravo.id): 10}
    assert result.transaction.kind.value == "PURCHASE"


def test_transfer_endpoint_maps_errors(db_session, seeded):
    same_base = inventory_schemas.TransferRequest(
        asset_id=seeded.rifle.id,
        source_base_id=seeded.alpha.id,
        dest_base_id=seeded.alpha.id,
        quantity=1,
    )
    with pytest.raises(HTTPException) as exc:
        inventory_router.record_transfer(same_base, db=db_session, ctx=seeded.logistics_ctx)
    assert exc.value.status_code == status.HTTP_400_BAD_REQUEST

    with pytest.raises(HTTPException) as exc:
        inventory_router.record_transfer(same_base, db=db_session, ctx=seeded.commander_ctx)
    assert exc.value.status_code == status.HTTP_403_FORBIDDEN


def test_assignment_endpoint_message_uses_kind(db_session, seeded):
    result = inventory_router.record_assignment(
        inventory_schemas.AssignmentRequest(
            asset_id=seeded.humvee.id, base_id=seeded.alpha.id, quantity=1, type="ASSIGN"
        ),
        db=db_session,
        ctx=seeded.commander_ctx,
    )
    assert result.message == "ASSIGN recorded successfully"
    assert result.quantities == {str(seeded.alpha.id): 0}


def test_dashboard_scopes_commander_to_home_base(db_session, seeded):
    inventory_router.record_purchase(
        inventory_schemas.PurchaseRequest(asset_id=seeded.rifle.id, base_id=seeded.alpha.id, quantity=6),
        db=db_session,
        ctx=seeded.admin_ctx,
    )

    summary = inventory_router.dashboard(
        base_id=None, asset_type=None, db=db_session, ctx=seeded.commander_ctx
    )
    assert isinstance(summary, inventory_schemas.ScopedSummary)
    assert summary.base_id == seeded.alpha.id
    assert summary.closing_balance == 6

    with pytest.raises(HTTPException) as exc:
        inventory_router.dashboard(
            base_id=seeded.bravo.id, asset_type=None, db=db_session, ctx=seeded.commander_ctx
        )
    assert exc.value.status_code == status.HTTP_403_FORBIDDEN


def test_dashboard_for_admin_is_global_by_default(db_session, seeded):
    summary = inventory_router.dashboard(
        base_id=None, asset_type="Weapon", db=db_session, ctx=seeded.admin_ctx
    )
    assert isinstance(summary, inventory_schemas.GlobalSummary)
    assert summary.category == "Weapon"


def test_history_endpoint_scoped_for_logistics(db_session, seeded):
    inventory_router.record_purchase(
        inventory_schemas.PurchaseRequest(asset_id=seeded.rifle.id, base_id=seeded.alpha.id, quantity=6),
        db=db_session,
        ctx=seeded.admin_ctx,
    )
    inventory_router.record_purchase(
        inventory_schemas.PurchaseRequest(asset_id=seeded.rifle.id, base_id=seeded.bravo.id, quantity=2),
        db=db_session,
        ctx=seeded.admin_ctx,
    )

    items = inventory_router.history(base_id=None, db=db_session, ctx=seeded.logistics_ctx)
    assert [item.dest_base for item in items] == ["Bravo Base"]
