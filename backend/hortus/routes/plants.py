import logging
import re
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from ..db import PlantStore, get_store
from ..errors import BadRequestError, MethodNotAllowedError
from ..helpers.sanitize import sanitize_common_name, sanitize_scientific_name
from ..schemas.plant import DEFAULT_EVENT_TYPE

logger = logging.getLogger(__name__)

app = APIRouter()

ALL_METHODS = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
READ_METHODS = ("GET", "HEAD")
WRITE_METHODS = ("POST",)

HTML = "text/html"
URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"

# Base-10 integer: optional sign, ASCII digits only.
INT_RE = re.compile(r"[+-]?[0-9]+")
INT64_MAX = 2**63 - 1


def _reject_other_methods(path: str, allowed: tuple[str, ...]) -> None:
    """Answer 405 on ``path`` for every method outside ``allowed``."""

    async def method_not_allowed() -> Response:
        raise MethodNotAllowedError(allowed)

    app.add_api_route(
        path,
        method_not_allowed,
        methods=[m for m in ALL_METHODS if m not in allowed],
        include_in_schema=False,
    )


def parse_plant_id(raw: str) -> int:
    """Parse a path identifier as a base-10 integer."""
    if not INT_RE.fullmatch(raw or ""):
        raise BadRequestError(f"invalid plant id: {raw!r}")
    value = int(raw)
    if not -INT64_MAX - 1 <= value <= INT64_MAX:
        raise BadRequestError(f"plant id out of range: {raw!r}")
    return value


def parse_urlencoded(body: bytes) -> dict[str, str]:
    """
    Decode an urlencoded body into fields, keeping the first value of a
    repeated key.

    Raw and percent-escaped bytes are both decoded as UTF-8 with
    ``surrogateescape``, so invalid sequences survive as lone surrogates for
    the name checks to reject instead of being replaced.
    """
    try:
        text = body.decode("utf-8", "surrogateescape")
        pairs = parse_qsl(text, keep_blank_values=True, encoding="utf-8", errors="surrogateescape")
    except ValueError as e:
        raise BadRequestError(str(e) or "malformed form body") from e
    fields: dict[str, str] = {}
    for key, value in pairs:
        fields.setdefault(key, value)
    return fields


async def read_form(request: Request) -> dict[str, str]:
    """Parse the request body as form fields. Missing fields read as ''."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == URLENCODED:
        return parse_urlencoded(await request.body())
    if content_type != MULTIPART:
        return {}
    try:
        form = await request.form()
    except (HTTPException, MultiPartException, UnicodeDecodeError) as e:
        raise BadRequestError(getattr(e, "detail", None) or str(e) or "malformed form body") from e
    fields: dict[str, str] = {}
    for key, value in form.multi_items():
        if isinstance(value, str):
            fields.setdefault(key, value)
    return fields


def _headers_only(response: Response) -> Response:
    # Content-Length was computed from the full body and is left as is.
    response.body = b""
    return response


# /plants/ --------------------------------------------------------------------

@app.api_route("/plants/", methods=list(READ_METHODS))
async def list_plants(request: Request, store: PlantStore = Depends(get_store)) -> Response:
    """Short description (id, common name) of every plant, as a JSON array."""
    plants = await run_in_threadpool(store.list_plants_short_description)
    response = JSONResponse([p.model_dump() for p in plants])
    if request.method == "HEAD":
        return _headers_only(response)
    return response


_reject_other_methods("/plants/", READ_METHODS)


# /plants/new/ ----------------------------------------------------------------

@app.post("/plants/new/")
async def create_plant(request: Request, store: PlantStore = Depends(get_store)) -> Response:
    """
    Create a plant from the ``common-name``, ``generic-name`` and
    ``specific-name`` form fields. The body of the response is the id of the
    new plant in decimal.
    """
    form = await read_form(request)

    # Checked in this order; the first failure is reported.
    common_name = sanitize_common_name(form.get("common-name"))
    generic_name = sanitize_scientific_name(form.get("generic-name"))
    specific_name = sanitize_scientific_name(form.get("specific-name"))

    new_id = await run_in_threadpool(store.add_plant, common_name, generic_name, specific_name)
    logger.info("Created plant %s (%s)", new_id, common_name)
    return Response(content=str(new_id), media_type=HTML)


_reject_other_methods("/plants/new/", WRITE_METHODS)


# /plants/log/{plant_id}/ -----------------------------------------------------

@app.post("/plants/log/{plant_id}/")
async def add_plant_log(plant_id: str, request: Request, store: PlantStore = Depends(get_store)) -> Response:
    pid = parse_plant_id(plant_id)
    form = await read_form(request)
    # Log descriptions are free-form notes and are stored as sent.
    await run_in_threadpool(store.add_plant_log, pid, form.get("new-entry", ""), DEFAULT_EVENT_TYPE)
    return Response(media_type=HTML)


_reject_other_methods("/plants/log/{plant_id}/", WRITE_METHODS)


# /plants/{plant_id}/ ---------------------------------------------------------

@app.api_route("/plants/{plant_id}/", methods=list(READ_METHODS))
async def get_plant(plant_id: str, request: Request, store: PlantStore = Depends(get_store)) -> Response:
    """
    Names and log entries of one plant, as a JSON object.

    An unknown id fails like any other storage error (500).
    """
    pid = parse_plant_id(plant_id)
    plant = await run_in_threadpool(store.get_plant, pid)
    response = JSONResponse(plant.model_dump())
    if request.method == "HEAD":
        return _headers_only(response)
    return response


_reject_other_methods("/plants/{plant_id}/", READ_METHODS)
