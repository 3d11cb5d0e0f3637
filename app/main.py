# app/main.py

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from concurrent.futures import ThreadPoolExecutor
import asyncio
import os
import sys
import time
import traceback
from typing import List, Optional

from poselog.config import CSV_FILENAME, UPDATE_RATE
from poselog.data_models import (
    CameraInfo, DisplaySizeRequest, HitTestRequest, JointReadout, LoggingModeRequest,
    LoggingState, StartCameraRequest, StatusResponse,
)
from poselog.errors import BackendLoadError, EmptyDatasetError, LoggingActiveError
from poselog.pose_engine import PoseEngine
from poselog.utils.camera_scan import enumerate_cameras

# --- PATH CONFIG ---
def get_writable_dir():
    if getattr(sys, 'frozen', False):
        return os.path.dirname(sys.executable)
    return os.getcwd()

writable_base = get_writable_dir()
if not os.access(writable_base, os.W_OK):
    writable_base = os.path.join(os.path.expanduser("~"), "poselog")

SESSION_ROOT = os.path.join(writable_base, "sessions")

# --- APP SETUP ---
app = FastAPI(title="poselog")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- GLOBAL STATE ---
engine: PoseEngine = PoseEngine(session_root_override=SESSION_ROOT)
executor = ThreadPoolExecutor(max_workers=2)
is_streaming: bool = False
active_websockets: List[WebSocket] = []
target_fps_delay: float = 1.0 / UPDATE_RATE
streaming_task: Optional[asyncio.Task] = None

# --- HELPER FUNCTIONS ---
async def run_in_executor_async(func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, func, *args)

async def broadcast(data: str):
    for ws in list(active_websockets):
        try:
            await ws.send_text(data)
        except Exception:
            if ws in active_websockets:
                active_websockets.remove(ws)

async def streaming_loop():
    global is_streaming
    print("[Streaming Loop] Starting...")
    while is_streaming:
        start_t = time.time()
        try:
            payload = await engine.render_tick()
            # no frame yet: not an error, just nothing to draw this tick
            if payload is not None:
                await broadcast(payload.model_dump_json())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            print(f"[Streaming Loop] Error: {e}")
            traceback.print_exc()

        elapsed = time.time() - start_t
        await asyncio.sleep(max(0.001, target_fps_delay - elapsed))

    print("[Streaming Loop] Exiting...")

async def stop_streaming():
    global is_streaming, streaming_task

    is_streaming = False
    try:
        current_task = asyncio.current_task()
        if streaming_task and streaming_task != current_task and not streaming_task.done():
            print("[System] Waiting for stream loop to finish...")
            await asyncio.wait_for(streaming_task, timeout=2.0)
    except Exception as e:
        print(f"[System] Warning during stop wait: {e}")
    streaming_task = None

    # safe to release the camera once the loop is out of video.read()
    engine.stop_camera()

# --- ENDPOINTS ---
@app.get("/cameras", response_model=List[CameraInfo])
async def list_cameras():
    return await run_in_executor_async(enumerate_cameras)

@app.post("/camera/start", response_model=StatusResponse)
async def start_camera(req: StartCameraRequest):
    global is_streaming, target_fps_delay, streaming_task

    await stop_streaming()
    target_fps_delay = 1.0 / float(req.target_fps)

    try:
        success = await run_in_executor_async(engine.start_camera, req)
    except BackendLoadError as e:
        return StatusResponse(status="error", message=str(e))
    if not success:
        return StatusResponse(status="error", message="Failed to open camera")

    engine.start_sampling()
    is_streaming = True
    streaming_task = asyncio.create_task(streaming_loop())
    return StatusResponse(status="success", message=f"Started {engine.model_name}",
                          details={"camera_id": engine.current_camera_id})

@app.post("/camera/stop", response_model=StatusResponse)
async def stop_camera():
    await stop_streaming()
    return StatusResponse(status="success", message="Stopped")

@app.post("/display/resize", response_model=StatusResponse)
async def resize_display(req: DisplaySizeRequest):
    engine.resize(req.width, req.height)
    return StatusResponse(status="success", message=f"Display {req.width}x{req.height}")

@app.get("/logging/state", response_model=LoggingState)
async def logging_state():
    return engine.logging_state()

@app.post("/logging/toggle", response_model=LoggingState)
async def toggle_logging():
    engine.toggle_logging()
    return engine.logging_state()

@app.post("/logging/mode", response_model=StatusResponse)
async def set_logging_mode(req: LoggingModeRequest):
    if not engine.set_logging_mode(req.mode):
        return StatusResponse(status="error", message="Stop logging before changing mode")
    return StatusResponse(status="success", message=req.mode.label)

@app.get("/joints", response_model=List[JointReadout])
async def list_joints():
    return engine.joint_readouts()

@app.post("/joints/hit", response_model=StatusResponse)
async def hit_joint(req: HitTestRequest):
    name = engine.hit_test(req.x, req.y)
    if name is None:
        return StatusResponse(status="error", message="No joint at that point")
    if not engine.toggle_joint(name):
        return StatusResponse(status="error", message="Joints are locked while logging")
    return StatusResponse(status="success", message=name,
                          details={"enabled": engine.toggles.is_enabled(name)})

@app.post("/joints/{name}/toggle", response_model=StatusResponse)
async def toggle_joint(name: str):
    try:
        flipped = engine.toggle_joint(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown joint {name}")
    if not flipped:
        return StatusResponse(status="error", message="Joints are locked while logging")
    return StatusResponse(status="success", message=name,
                          details={"enabled": engine.toggles.is_enabled(name)})

@app.post("/data/export", response_model=StatusResponse)
async def export_data():
    path = await run_in_executor_async(engine.save_session_data)
    if path:
        return StatusResponse(status="success", message=path)
    return StatusResponse(status="error", message="No data")

@app.get("/data/download")
async def download_csv():
    try:
        content = engine.export_csv()
    except LoggingActiveError as e:
        return Response(status_code=409, content=str(e))
    except EmptyDatasetError as e:
        return Response(status_code=404, content=str(e))
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={CSV_FILENAME}"},
    )

@app.websocket("/pose/stream")
async def ws_endpoint(ws: WebSocket):
    await ws.accept()
    active_websockets.append(ws)
    try:
        # frames are pushed by streaming_loop; just wait for the client to leave
        while True:
            await ws.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        if ws in active_websockets:
            active_websockets.remove(ws)

@app.on_event("shutdown")
async def shutdown():
    await stop_streaming()
    engine.shutdown()
    executor.shutdown(wait=False)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, workers=1)
