"""
Serves the compiled frontend bundle.

Known files are returned as-is. Any other GET/HEAD path gets the bundle's
index.html so the client-side router can resolve it. Paths under /api
never fall back.
"""

import os

from starlette.exceptions import HTTPException
from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

INDEX_FILE = "index.html"
API_PREFIX = "api"


class SPAStaticFiles(StaticFiles):
    def __init__(self, directory: str):
        super().__init__(directory=directory, html=True)

    async def get_response(self, path: str, scope: Scope) -> Response:
        try:
            return await super().get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404 or _is_api_path(path):
                raise
        return await super().get_response(INDEX_FILE, scope)


def _is_api_path(path: str) -> bool:
    first = path.replace(os.sep, "/").lstrip("/").split("/", 1)[0]
    return first == API_PREFIX


def bundle_available(directory: str) -> bool:
    return os.path.isfile(os.path.join(directory, INDEX_FILE))
