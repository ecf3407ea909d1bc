import os, uuid, logging
from typing import Optional
from fastapi import FastAPI, UploadFile, File, HTTPException, Form
from fastapi.middleware.cors import CORSMiddleware
import boto3
from botocore.exceptions import ClientError

from digitizer import DST_MODES, PNG_FILENAME, make_pattern
from errors import CanvasUnavailable, ImageLoadError, SettingsError
from palette import COLOR_LIST_FILENAME, COLOR_LIST_MIME
from settings import RenderSettings
from writer import DST_FILENAME, DST_MIME

logger = logging.getLogger("pattern_worker")
logging.basicConfig(level=logging.INFO)

# --- AWS setup ---
AWS_REGION = os.environ["AWS_REGION"]
S3_BUCKET = os.environ["S3_BUCKET"]
SIGNED_URL_TTL_SECONDS = int(os.environ.get("SIGNED_URL_TTL_SECONDS", "300"))
MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
s3 = boto3.client("s3", region_name=AWS_REGION)

def put_bytes(key: str, data: bytes, content_type: str, filename: Optional[str] = None):
    extra = {"ContentDisposition": f'attachment; filename="{filename}"'} if filename else {}
    s3.put_object(Bucket=S3_BUCKET, Key=key, Body=data, ContentType=content_type, **extra)

def signed_url(key: str, seconds: int = SIGNED_URL_TTL_SECONDS):
    return s3.generate_presigned_url(
        "get_object",
        Params={"Bucket": S3_BUCKET, "Key": key},
        ExpiresIn=int(seconds),
    )

def object_exists(key: str) -> bool:
    try:
        s3.head_object(Bucket=S3_BUCKET, Key=key)
        return True
    except ClientError:
        return False

# --- FastAPI app ---
app = FastAPI(title="Embroidery Pattern Worker")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# health
@app.get("/")
def root():
    return {"ok": True, "service": "embroidery-pattern-worker"}

# create job: upload image + render settings, render synchronously, store artifacts
@app.post("/jobs")
async def create_job(
    file: UploadFile = File(...),
    view_mode: Optional[str] = Form(None),
    stitch_direction: Optional[str] = Form(None),
    thread_pattern: Optional[str] = Form(None),
    thread_spacing: Optional[float] = Form(None),
    wave_amplitude: Optional[float] = Form(None),
    wave_frequency: Optional[float] = Form(None),
    thread_intensity: Optional[float] = Form(None),
    grid_size: Optional[int] = Form(None),
    dst_mode: str = Form("placeholder"),
):
    if dst_mode not in DST_MODES:
        raise HTTPException(status_code=422, detail=f"dst_mode must be one of {list(DST_MODES)}")
    try:
        settings = RenderSettings.from_mapping({
            "view_mode": view_mode,
            "stitch_direction": stitch_direction,
            "thread_pattern": thread_pattern,
            "thread_spacing": thread_spacing,
            "wave_amplitude": wave_amplitude,
            "wave_frequency": wave_frequency,
            "thread_intensity": thread_intensity,
            "grid_size": grid_size,
        })
    except SettingsError as e:
        raise HTTPException(status_code=422, detail=str(e))

    # read one byte past the cap so oversize uploads are refused without buffering them whole
    src_bytes = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(src_bytes) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="image too large")

    job_id = str(uuid.uuid4())
    logger.info("job %s: %s (%d bytes)", job_id, file.filename, len(src_bytes))
    try:
        result, preview_png, dst_bytes, color_list = make_pattern(src_bytes, settings, dst_mode=dst_mode)
    except ImageLoadError as e:
        logger.warning("job %s: image load failed: %s", job_id, e)
        raise HTTPException(status_code=400, detail=f"image load failed: {e}")
    except CanvasUnavailable as e:
        logger.error("job %s: canvas unavailable: %s", job_id, e)
        raise HTTPException(status_code=500, detail=f"canvas unavailable: {e}")

    try:
        put_bytes(f"jobs/{job_id}/source", src_bytes, file.content_type or "application/octet-stream")
        put_bytes(f"jobs/{job_id}/preview.png", preview_png, "image/png", PNG_FILENAME)
        put_bytes(f"jobs/{job_id}/output.dst", dst_bytes, DST_MIME, DST_FILENAME)
        put_bytes(f"jobs/{job_id}/colors.txt", color_list.encode("utf-8"), COLOR_LIST_MIME, COLOR_LIST_FILENAME)
    except ClientError:
        logger.exception("job %s: storing artifacts failed", job_id)
        raise HTTPException(status_code=502, detail="could not store job artifacts")

    return {
        "jobId": job_id,
        "width": result.raster.width,
        "height": result.raster.height,
        "palette": [list(c) for c in result.palette],
    }

# status: tell front-end if preview exists; if so, return a signed URL
@app.get("/jobs/{job_id}")
def job_status(job_id: str):
    key = f"jobs/{job_id}/preview.png"
    if not object_exists(key):
        return {"status": "processing"}
    return {"status": "ready", "previewUrl": signed_url(key)}

# hand back a signed link to the stitch file
@app.get("/download-link/{job_id}")
def download_link(job_id: str):
    key = f"jobs/{job_id}/output.dst"
    if not object_exists(key):
        return {"error": "not_ready"}
    return {"url": signed_url(key)}

# hand back a signed link to the thread color list
@app.get("/colors-link/{job_id}")
def colors_link(job_id: str):
    key = f"jobs/{job_id}/colors.txt"
    if not object_exists(key):
        return {"error": "not_ready"}
    return {"url": signed_url(key)}
