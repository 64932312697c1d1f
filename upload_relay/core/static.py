import os

from fastapi.staticfiles import StaticFiles
from starlette.responses import Response
from starlette.types import Scope

CSS_CONTENT_TYPE = "text/css; charset=utf-8"


class AssetStaticFiles(StaticFiles):
    """StaticFiles that always labels stylesheets as ``text/css``."""

    def file_response(
        self,
        full_path: str | os.PathLike[str],
        stat_result: os.stat_result,
        scope: Scope,
        status_code: int = 200,
    ) -> Response:
        response = super().file_response(full_path, stat_result, scope, status_code)
        if str(full_path).endswith(".css"):
            response.headers["content-type"] = CSS_CONTENT_TYPE
        return response
