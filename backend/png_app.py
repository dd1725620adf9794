# png_app.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from organize_png_meta import inspect_png
from png_chunks import Chunk, is_valid_chunk_type
from png_deflate import set_max_inflated_bytes
from png_edit import (
    add_or_update_text_chunk,
    remove_chunks,
    remove_text_chunks,
    set_physical_resolution,
)
from png_errors import PngError
from png_read import has_png_signature, read_chunks
from png_settings import Settings, get_settings
from png_text import ResolutionUnit, text_chunk_for
from png_write import write_chunks

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    set_max_inflated_bytes(settings.max_inflated_bytes)
    logger.info("inflated text capped at %d bytes", settings.max_inflated_bytes)
    yield


app = FastAPI(title="pngmeta", lifespan=lifespan)

# Allow your Vite dev server to call the API during development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PngError)
async def png_error_handler(request: Request, exc: PngError):
    logger.info("rejected %s: %s: %s", request.url.path, type(exc).__name__, exc)
    return JSONResponse(status_code=422, content={"error": str(exc), "kind": type(exc).__name__})


async def read_png_upload(file: UploadFile = File(...),
                          settings: Settings = Depends(get_settings)) -> bytes:
    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail=f"Upload exceeds {settings.max_upload_bytes} bytes")
    if not has_png_signature(data):
        raise HTTPException(status_code=415, detail="Please upload a PNG (.png) image.")
    return data


def png_response(chunks) -> Response:
    return Response(content=write_chunks(chunks), media_type="image/png")


@app.post("/analyze")
async def analyze_image(data: bytes = Depends(read_png_upload)):
    return inspect_png(data)


@app.post("/text")
async def set_text(data: bytes = Depends(read_png_upload),
                   keyword: str = Form(...),
                   text: str = Form(...),
                   chunk_type: Optional[str] = Form(None),
                   language_tag: str = Form(""),
                   translated_keyword: str = Form(""),
                   compressed: bool = Form(False),
                   settings: Settings = Depends(get_settings)):
    chunk_type = chunk_type or settings.default_text_type
    options = {}
    if chunk_type == "iTXt":
        options = dict(compressed=compressed, language_tag=language_tag, translated_keyword=translated_keyword)
    chunks = read_chunks(data)
    add_or_update_text_chunk(chunks, text_chunk_for(chunk_type, keyword, text, **options))
    return png_response(chunks)


@app.post("/text/remove")
async def remove_text(data: bytes = Depends(read_png_upload), keyword: str = Form(...)):
    chunks = read_chunks(data)
    remove_text_chunks(chunks, keyword)
    return png_response(chunks)


@app.post("/phys")
async def set_phys(data: bytes = Depends(read_png_upload),
                   x: int = Form(...),
                   y: int = Form(...),
                   unit: int = Form(int(ResolutionUnit.METER))):
    chunks = read_chunks(data)
    set_physical_resolution(chunks, x, y, unit)
    return png_response(chunks)


@app.post("/chunks/remove")
async def remove_chunk_type(data: bytes = Depends(read_png_upload), chunk_type: str = Form(...)):
    if not is_valid_chunk_type(chunk_type):
        raise HTTPException(status_code=400, detail=f"Invalid chunk type {chunk_type!r}")
    if Chunk(chunk_type).critical:
        raise HTTPException(status_code=400, detail=f"Refusing to remove critical chunk {chunk_type}")
    chunks = read_chunks(data)
    remove_chunks(chunks, chunk_type)
    return png_response(chunks)


def main() -> None:
    uvicorn.run("png_app:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    main()
