from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response

from api.dependencies import get_identity, get_service
from core.file_converter.core import ConversionService
from core.file_converter.errors import MissingFields
from core.file_converter.identity import Identity
from core.file_converter.models import ConversionRequest, Upload

router = APIRouter(prefix="/api", tags=["conversion"])


async def _read_upload(upload: UploadFile) -> Upload:
    return Upload(filename=upload.filename or "upload", data=await upload.read())


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@router.post("/convert", summary="Convert uploaded file(s) between formats")
async def convert_files(
    source: str | None = Form(None, alias="from"),
    target: str | None = Form(None, alias="to"),
    file: UploadFile | None = File(None),
    files: List[UploadFile] | None = File(None),
    identity: Identity = Depends(get_identity),
    service: ConversionService = Depends(get_service),
) -> Response:
    if not source or not target or (file is None and not files):
        error = MissingFields()
        return _error_response(error.status_code, error.message)

    request = ConversionRequest(
        source=source,
        target=target,
        file=await _read_upload(file) if file is not None else None,
        files=tuple([await _read_upload(item) for item in files or []]),
        identity=identity,
    )
    result = await service.convert(request)
    if result.error is not None:
        return _error_response(result.error.status_code, result.error.message)

    converted = result.unwrap()
    return Response(
        content=converted.data,
        media_type=converted.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{converted.filename}"'},
    )


__all__ = ["router"]
