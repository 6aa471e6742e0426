"""
FastAPI server for Convec API.

Provides REST endpoints for:
- Background removal (color, fuzzy, chroma key, flood fill, edge-preserving)
- Background replacement and batch removal
- Raster to SVG vectorization
- Combined remove-then-vectorize processing
"""

import base64
import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from convec import __version__
from convec.background import BackgroundRemovalHandler
from convec.shared.config import get_settings
from convec.shared.image_io import decode_image, encode_image, mime_type, to_data_url
from convec.shared.models import (
    BatchItemResponse,
    BatchResponse,
    CompleteProcessResponse,
    PreprocessOptions,
    RemovalMethod,
    RemovalOptions,
    VectorPathResult,
    VectorizationOptions,
)
from convec.shared.pixels import PixelBuffer
from convec.vectorization import SVGWriter, VectorizationHandler

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {"image/png", "image/jpeg", "image/jpg", "image/webp"}


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.api.title,
        description="Background removal and raster to SVG vectorization",
        version=__version__,
    )

    if settings.api.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    return app


app = create_app()


# =============================================================================
# Helpers
# =============================================================================

async def read_image(file: UploadFile) -> PixelBuffer:
    """Validate and decode an uploaded image."""
    settings = get_settings()

    if file.content_type and file.content_type not in ALLOWED_MIME_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only PNG, JPEG, and WebP are allowed.",
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="No image file provided")
    if len(content) > settings.image.max_file_size:
        raise HTTPException(status_code=413, detail="File too large")

    try:
        return decode_image(content, max_size=settings.image.max_image_size)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def check_output_format(output_format: str) -> str:
    settings = get_settings()
    if not settings.is_supported_format(output_format):
        raise HTTPException(status_code=400, detail=f"Unsupported format: {output_format}")
    return output_format.lower()


def build_removal_options(**values: Any) -> RemovalOptions:
    """Build removal options, mapping invalid input to a 400."""
    settings = get_settings()
    values = {k: v for k, v in values.items() if v is not None}
    values.setdefault("target_color", settings.background.default_target_color)

    try:
        options = RemovalOptions(**values)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if options.tolerance is not None and options.tolerance > settings.background.max_tolerance:
        raise HTTPException(
            status_code=400,
            detail=f"Tolerance must be between 0 and {settings.background.max_tolerance}",
        )

    return options


def build_vectorization_options(**values: Any) -> VectorizationOptions:
    """Merge request values over the configured defaults."""
    settings = get_settings()
    merged = settings.vectorization.model_dump()
    merged.update({k: v for k, v in values.items() if v is not None})

    try:
        return VectorizationOptions(**merged)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def build_preprocess_options(**values: Any) -> PreprocessOptions:
    try:
        return PreprocessOptions(**{k: v for k, v in values.items() if v is not None})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def image_response(buffer: PixelBuffer, output_format: str, stem: str) -> Response:
    """Encode a buffer as a downloadable image response."""
    content = encode_image(buffer, output_format)
    return Response(
        content=content,
        media_type=mime_type(output_format),
        headers={"Content-Disposition": f'attachment; filename="{stem}.{output_format}"'},
    )


async def run_core(operation: Callable[..., Any], *args: Any) -> Any:
    """Run a CPU-bound core call off the event loop, mapping errors."""
    try:
        return await run_in_threadpool(operation, *args)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Processing failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "Convec API", "version": __version__}


@app.post("/api/background/remove")
async def remove_background(
    image: UploadFile = File(...),
    method: str = Form("color"),
    target_color: Optional[str] = Form(None, alias="targetColor"),
    tolerance: Optional[float] = Form(None),
    output_format: str = Form("png", alias="outputFormat"),
):
    """Remove background using color matching (color, fuzzy, edge-preserving)."""
    output_format = check_output_format(output_format)
    options = build_removal_options(method=method, target_color=target_color, tolerance=tolerance)

    buffer = await read_image(image)
    handler = BackgroundRemovalHandler()
    result = await run_core(handler.remove, buffer, options)

    return image_response(result, output_format, "background_removed")


@app.post("/api/background/chroma-key")
async def chroma_key(
    image: UploadFile = File(...),
    target_hue: Optional[float] = Form(None, alias="targetHue"),
    hue_tolerance: Optional[float] = Form(None, alias="hueTolerance"),
    saturation_min: Optional[float] = Form(None, alias="saturationMin"),
    output_format: str = Form("png", alias="outputFormat"),
):
    """Chroma key (green screen) background removal."""
    output_format = check_output_format(output_format)
    options = build_removal_options(
        method=RemovalMethod.CHROMA_KEY,
        target_hue=target_hue,
        hue_tolerance=hue_tolerance,
        saturation_min=saturation_min,
    )

    buffer = await read_image(image)
    handler = BackgroundRemovalHandler()
    result = await run_core(handler.remove, buffer, options)

    return image_response(result, output_format, "chroma_key_removed")


@app.post("/api/background/flood-fill")
async def flood_fill(
    image: UploadFile = File(...),
    start_x: int = Form(0, alias="startX"),
    start_y: int = Form(0, alias="startY"),
    tolerance: Optional[float] = Form(None),
    output_format: str = Form("png", alias="outputFormat"),
):
    """Flood fill background removal from a seed pixel."""
    output_format = check_output_format(output_format)
    options = build_removal_options(
        method=RemovalMethod.FLOOD_FILL,
        start_x=start_x,
        start_y=start_y,
        tolerance=tolerance,
    )

    buffer = await read_image(image)
    handler = BackgroundRemovalHandler()
    result = await run_core(handler.remove, buffer, options)

    return image_response(result, output_format, "flood_fill_removed")


@app.post("/api/background/replace")
async def replace_background(
    image: UploadFile = File(...),
    background: Optional[UploadFile] = File(None),
    background_color: str = Form("#ffffff", alias="backgroundColor"),
    target_color: Optional[str] = Form(None, alias="targetColor"),
    tolerance: Optional[float] = Form(None),
    output_format: str = Form("png", alias="outputFormat"),
):
    """
    Replace background with a color or an image.

    The background is first removed by color match, then the cut-out is
    composited over the replacement.
    """
    output_format = check_output_format(output_format)
    options = build_removal_options(target_color=target_color, tolerance=tolerance)

    buffer = await read_image(image)
    replacement: Any = background_color
    if background is not None and background.filename:
        replacement = await read_image(background)

    handler = BackgroundRemovalHandler()
    result = await run_core(handler.remove_and_replace, buffer, replacement, options)

    return image_response(result, output_format, "background_replaced")


@app.post("/api/background/batch", response_model=BatchResponse)
async def batch_removal(
    images: list[UploadFile] = File(...),
    method: str = Form("color"),
    target_color: Optional[str] = Form(None, alias="targetColor"),
    tolerance: Optional[float] = Form(None),
    output_format: str = Form("png", alias="outputFormat"),
):
    """Batch background removal; each image succeeds or fails on its own."""
    settings = get_settings()
    output_format = check_output_format(output_format)

    if len(images) > settings.background.max_batch_size:
        raise HTTPException(
            status_code=400,
            detail=f"At most {settings.background.max_batch_size} images per batch",
        )

    options = build_removal_options(method=method, target_color=target_color, tolerance=tolerance)

    # Images that fail to decode are reported without reaching the handler
    responses: dict[int, BatchItemResponse] = {}
    buffers: list[PixelBuffer] = []
    positions: list[int] = []

    for index, upload in enumerate(images):
        try:
            buffers.append(await read_image(upload))
            positions.append(index)
        except HTTPException as e:
            responses[index] = BatchItemResponse(index=index, success=False, error=str(e.detail))

    handler = BackgroundRemovalHandler()
    results = await run_core(handler.batch_remove, buffers, options)

    for position, result in zip(positions, results):
        if result.success:
            responses[position] = BatchItemResponse(
                index=position,
                success=True,
                filename=f"processed_{position}.{output_format}",
                data=base64.b64encode(encode_image(result.buffer, output_format)).decode("utf-8"),
            )
        else:
            responses[position] = BatchItemResponse(index=position, success=False, error=result.error)

    ordered = [responses[i] for i in range(len(images))]
    return BatchResponse(processed=len(ordered), results=ordered)


@app.post("/api/vectorize")
async def vectorize(
    image: UploadFile = File(...),
    threshold: Optional[int] = Form(None),
    turdsize: Optional[int] = Form(None),
    optcurve: Optional[bool] = Form(None),
    opttolerance: Optional[float] = Form(None),
    scale: Optional[float] = Form(None),
    fill_color: Optional[str] = Form(None, alias="fillColor"),
    normalize_winding: Optional[bool] = Form(None, alias="normalizeWinding"),
    blur: Optional[float] = Form(None),
    contrast: Optional[float] = Form(None),
    brightness: Optional[float] = Form(None),
):
    """Vectorize an image and return an SVG document."""
    options = build_vectorization_options(
        threshold=threshold,
        turdsize=turdsize,
        optcurve=optcurve,
        opttolerance=opttolerance,
        scale=scale,
        fill_color=fill_color,
        normalize_winding=normalize_winding,
    )
    preprocess = build_preprocess_options(blur=blur, contrast=contrast, brightness=brightness)

    buffer = await read_image(image)
    handler = VectorizationHandler()
    svg = await run_core(handler.vectorize_with_preprocessing, buffer, preprocess, options)

    return Response(content=svg, media_type="image/svg+xml")


@app.post("/api/vectorize/path-data", response_model=VectorPathResult)
async def vectorize_path_data(
    image: UploadFile = File(...),
    threshold: Optional[int] = Form(None),
    turdsize: Optional[int] = Form(None),
    optcurve: Optional[bool] = Form(None),
    opttolerance: Optional[float] = Form(None),
    scale: Optional[float] = Form(None),
):
    """Vectorize an image and return bare path data with its size."""
    options = build_vectorization_options(
        threshold=threshold,
        turdsize=turdsize,
        optcurve=optcurve,
        opttolerance=opttolerance,
        scale=scale,
    )

    buffer = await read_image(image)
    handler = VectorizationHandler()
    return await run_core(handler.generate_path_data, buffer, options)


@app.post("/api/process/complete", response_model=CompleteProcessResponse)
async def process_complete(
    image: UploadFile = File(...),
    method: str = Form("color"),
    target_color: Optional[str] = Form(None, alias="targetColor"),
    tolerance: Optional[float] = Form(None),
    threshold: Optional[int] = Form(None),
    turdsize: Optional[int] = Form(None),
    scale: Optional[float] = Form(None),
    fill_color: Optional[str] = Form(None, alias="fillColor"),
):
    """Remove the background, then vectorize the cut-out."""
    removal = build_removal_options(method=method, target_color=target_color, tolerance=tolerance)
    options = build_vectorization_options(
        threshold=threshold,
        turdsize=turdsize,
        scale=scale,
        fill_color=fill_color,
    )

    buffer = await read_image(image)

    bg_handler = BackgroundRemovalHandler()
    buffer = await run_core(bg_handler.remove, buffer, removal)

    vec_handler = VectorizationHandler()
    contours = await run_core(vec_handler.extract_contours, buffer, options)
    svg = SVGWriter(scale=options.scale, fill_color=options.fill_color).document(
        contours, buffer.width, buffer.height
    )

    return CompleteProcessResponse(
        processed_image=to_data_url(buffer, "png"),
        svg=svg,
        path_count=len(contours),
        width=buffer.width * options.scale,
        height=buffer.height * options.scale,
    )


def main():
    """Run the API server."""
    import uvicorn

    from convec.shared.logging_setup import configure_logging

    settings = get_settings()
    configure_logging(settings)

    uvicorn.run(
        "convec.api.server:app",
        host=settings.local.api_host,
        port=settings.local.api_port,
        reload=settings.local.debug,
    )


if __name__ == "__main__":
    main()
