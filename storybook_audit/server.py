import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from storybook_audit.config import AuditSettings

logger = logging.getLogger(__name__)

AXE_ROUTE = "/axe.min.js"


def create_app(catalog_dir: Path, axe_script: Optional[Path] = None) -> FastAPI:
    """Static app serving a compiled Storybook, plus axe-core when a local copy is given."""
    app = FastAPI(title="Storybook Catalog", docs_url=None, redoc_url=None, openapi_url=None)

    if axe_script is not None:
        axe_path = Path(axe_script).expanduser().resolve()

        @app.get(AXE_ROUTE, include_in_schema=False)
        async def axe_core():
            if not axe_path.is_file():
                raise HTTPException(status_code=404, detail=f"axe-core script not found: {axe_path}")
            return FileResponse(axe_path, media_type="application/javascript")

    # Mounted last so the axe route is not shadowed
    app.mount("/", StaticFiles(directory=str(catalog_dir), html=True), name="storybook")
    return app


@asynccontextmanager
async def serve_catalog(settings: AuditSettings):
    """
    Runs the catalog server on the current event loop for the duration of the
    block. The browser is driven from the same loop, so the server must not
    block it.
    """
    catalog_dir = settings.ensure_catalog()
    logger.info(f"Serving directory: {catalog_dir}")

    app = create_app(catalog_dir, settings.axe_script)
    config = uvicorn.Config(app, host="127.0.0.1", port=settings.port, log_level="warning")
    server = uvicorn.Server(config)
    task = asyncio.create_task(server.serve())

    while not server.started:
        if task.done():
            # serve() returned early, e.g. the port is taken
            task.result()
            raise RuntimeError(f"Catalog server failed to start on port {settings.port}")
        await asyncio.sleep(0.05)

    try:
        yield server
    finally:
        server.should_exit = True
        await task
