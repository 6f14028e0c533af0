"""Feature modules, mounted under /api/v1 by auto-discovery."""

from importlib import import_module
from pathlib import Path

import structlog
from fastapi import APIRouter


logger = structlog.get_logger()


def discover_modules() -> list[APIRouter]:
    """Collect the routers of every feature package in this directory.

    A package is mounted when its ``__init__`` exposes ``router``.
    Packages whose name starts with an underscore are skipped.

    Returns:
        Routers in package-name order
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_"):
            continue
        module = import_module(f"{__name__}.{path.name}")
        router = getattr(module, "router", None)
        if router is None:
            logger.warning("module_without_router", module=path.name)
            continue
        routers.append(router)
        logger.debug("module_loaded", module=path.name)

    return routers
