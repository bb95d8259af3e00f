from __future__ import annotations

from functools import lru_cache
import logging

from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import DateSyncRequest, MealsPivotRequest, MealsPivotResponse
from catering.config import get_settings, normalize_options
from catering.date_sync import plan_date_sync
from catering.errors import ValidationError
from catering.pipeline import generate_documents
from catering.resources import PivotAssets, load_assets
from catering.sink import LocalDirectorySink


app = FastAPI(title="Catering Grid API", version="0.1.0")
logger = logging.getLogger(__name__)
logging.getLogger("catering").setLevel(get_settings().log_level)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_assets() -> PivotAssets:
    return load_assets(get_settings().assets_dir)


def get_sink() -> LocalDirectorySink:
    return LocalDirectorySink(get_settings().output_dir)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(data))


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/health")
def health():
    return _json({"status": "ok"})


@app.post("/meals-pivot", response_model=MealsPivotResponse)
def meals_pivot(request: MealsPivotRequest):
    try:
        payload = request.model_dump(by_alias=True, exclude={"options"})
        options = normalize_options(request.options.model_dump() if request.options else None)
        result = generate_documents(payload, get_sink(), assets=get_assets(), options=options)
        return MealsPivotResponse(
            status="success",
            xlsx=result.xlsx_location,
            html=result.html_location,
            base_name=result.base_name,
            grand_total=result.grand_total,
        )
    except ValidationError as exc:
        logger.warning("meals_pivot rejected payload: %s", exc)
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("meals_pivot failed")
        return _error(exc, 500)


@app.post("/update-dates/plan")
def update_dates_plan(request: DateSyncRequest):
    try:
        plan = plan_date_sync(request.existing, request.start_date, request.end_date)
        body = {"message": "Sync plan", "eventId": request.event_id, **plan.summary()}
        body["toDelete"] = plan.to_delete
        body["toAdd"] = [day.isoformat() for day in plan.to_add]
        return _json(body)
    except ValidationError as exc:
        return _error(exc, 400)
    except Exception as exc:
        logger.exception("update_dates_plan failed")
        return _error(exc, 500)
