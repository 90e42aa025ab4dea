from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
from typing import Dict

from core.config import APP_AUTHORS, APP_NAME, APP_VERSION

router = APIRouter()


def parse_version(version: str) -> Dict:
    core_part, _, pre = version.partition("-")
    major, minor, patch = (int(x) for x in core_part.split("."))
    return {"major": major, "minor": minor, "patch": patch, "pre": pre or None}


@router.get("/", response_class=PlainTextResponse)
@router.get("/info", response_class=PlainTextResponse)
async def info():
    return f"Welcome to {APP_NAME} v{APP_VERSION}"


@router.get("/authors", response_class=PlainTextResponse)
async def authors():
    return APP_AUTHORS or "No authors defined"


@router.get("/version", response_model=Dict)
async def version():
    return parse_version(APP_VERSION)
