from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.concurrency import run_in_threadpool

from config import config
from errors import (
    ConvergenceError,
    DegenerateResultError,
    ImageTooLargeError,
    InsufficientSamplesError,
    PixelExtractionError,
)
from imaging import ResizeQuality, decode_image, retrieve_color_palette
from logs import configure_logging

__version__ = "1.0.0"

configure_logging(config.LOG_LEVEL)


def palette_from_bytes(img_bytes: bytes, quality: ResizeQuality, seed: Optional[int]):
    img = decode_image(img_bytes, config.MAX_PIXELS)
    return retrieve_color_palette(img, quality, seed, config.TOLERANCE, config.MAX_ITERATIONS)


app = FastAPI(title="Color Palette", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True, "service": "color-palette", "version": __version__}


@app.post("/palette")
async def generate_palette(
    image: UploadFile = File(...),
    quality: str = Form(config.DEFAULT_QUALITY),
    seed: Optional[int] = Form(None),
):
    try:
        resize_quality = ResizeQuality.parse(quality)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    img_bytes = await image.read()
    if len(img_bytes) > config.max_file_bytes():
        raise HTTPException(status_code=413, detail=f"Image exceeds {config.MAX_FILE_MB} MB")

    try:
        # Decoding and clustering are CPU bound; keep them off the event loop
        palette = await run_in_threadpool(palette_from_bytes, img_bytes, resize_quality, seed)
    except ImageTooLargeError as e:
        logger.warning(f"Rejected upload {image.filename}: {e}")
        raise HTTPException(status_code=413, detail=str(e))
    except PixelExtractionError as e:
        logger.warning(f"Rejected upload {image.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except (InsufficientSamplesError, DegenerateResultError) as e:
        logger.warning(f"No palette for {image.filename}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except ConvergenceError as e:
        logger.error(f"Clustering failed for {image.filename}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return palette.to_dict()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
