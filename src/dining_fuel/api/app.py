"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime

from fastapi import FastAPI, HTTPException, Query, Request, status

from dining_fuel.api.schemas import (
    AddPlateItemRequest,
    CheckoutRequest,
    ReconcileRequest,
)
from dining_fuel.api.serializers import (
    draft_payload,
    meal_log_payload,
    plate_item_payload,
    plate_payload,
    search_result_payload,
    snapshot_payload,
)
from dining_fuel.app_logging import configure_logging
from dining_fuel.containers import AppContainer
from dining_fuel.domain.menu import ProviderResponse
from dining_fuel.services.plate import PlateError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/menu")
    async def menu(
        request: Request, day: date | None = Query(default=None, alias="date")
    ) -> dict[str, object]:
        """Reconciled menu for every configured slot on a date."""
        state_container: AppContainer = request.app.state.container
        snapshot = await state_container.menu_service.get_menu(day or _today())
        return snapshot_payload(snapshot)

    @app.get("/menu/search")
    async def menu_search(
        request: Request,
        q: str = "",
        day: date | None = Query(default=None, alias="date"),
    ) -> dict[str, object]:
        """Search items on the menu for a date."""
        state_container: AppContainer = request.app.state.container
        results = await state_container.menu_service.search(day or _today(), q)
        return {
            "query": q,
            "results": [search_result_payload(result) for result in results],
        }

    @app.post("/menu/reconcile")
    async def menu_reconcile(
        payload: ReconcileRequest, request: Request
    ) -> dict[str, object]:
        """Reconcile provider payloads that were fetched elsewhere."""
        state_container: AppContainer = request.app.state.container
        responses = {
            slot: ProviderResponse.from_payload(raw)
            for slot, raw in payload.slots.items()
        }
        snapshot = state_container.menu_service.build_snapshot(payload.day, responses)
        return snapshot_payload(snapshot)

    @app.get("/plate")
    async def get_plate(request: Request) -> dict[str, object]:
        """Current plate with totals."""
        plate = request.app.state.container.plate
        return plate_payload(plate.items, plate.summary())

    @app.post("/plate/items", status_code=status.HTTP_201_CREATED)
    async def add_plate_item(
        payload: AddPlateItemRequest, request: Request
    ) -> dict[str, object]:
        """Stage a menu item on the plate."""
        plate = request.app.state.container.plate
        try:
            plate_item = plate.add(
                payload.item.to_domain(),
                meal_type=payload.meal_type,
                location=payload.location,
                portion=payload.portion,
            )
        except PlateError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return {
            "item": plate_item_payload(plate_item),
            "plate": plate_payload(plate.items, plate.summary()),
        }

    @app.delete("/plate/items/{plate_item_id}")
    async def remove_plate_item(
        plate_item_id: str, request: Request
    ) -> dict[str, object]:
        """Remove one staged item."""
        plate = request.app.state.container.plate
        if not plate.remove(plate_item_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Plate item not found"
            )
        return plate_payload(plate.items, plate.summary())

    @app.delete("/plate")
    async def clear_plate(request: Request) -> dict[str, object]:
        """Remove every staged item."""
        plate = request.app.state.container.plate
        plate.clear()
        return plate_payload(plate.items, plate.summary())

    @app.post("/plate/checkout")
    async def checkout(payload: CheckoutRequest, request: Request) -> dict[str, object]:
        """Draft a meal log from the selected items, committing it for an athlete."""
        state_container: AppContainer = request.app.state.container
        plate = state_container.plate
        try:
            draft = plate.checkout(payload.ids, payload.date_time)
        except PlateError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        response: dict[str, object] = {
            "draft": draft_payload(draft),
            "mealLog": None,
            "plate": plate_payload(plate.items, plate.summary()),
        }
        if payload.athlete_id:
            meal_log = state_container.meal_log_service.commit(
                payload.athlete_id, draft
            )
            response["mealLog"] = meal_log_payload(meal_log)
        else:
            logger.info("Checkout drafted without athlete: items=%s", len(payload.ids))
        return response

    @app.get("/athletes/{athlete_id}/meal-logs")
    async def meal_logs(
        athlete_id: str, request: Request, limit: int = 10
    ) -> dict[str, object]:
        """Recent meal logs for an athlete."""
        state_container: AppContainer = request.app.state.container
        logs = state_container.meal_log_service.recent(athlete_id, limit)
        return {"mealLogs": [meal_log_payload(meal_log) for meal_log in logs]}

    return app


def _today() -> date:
    return datetime.now(tz=UTC).date()
