"""All magic values live here. No inline literals anywhere else."""

# Product
APP_NAME = "X-Ray with Blue"
SCAN_LABEL = "Blue Scan #%03d"
DISCLAIMER = (
    "X-Ray with Blue is an assistive technical tool and not a substitute for "
    "a specialist's diagnosis. Consult a qualified physician before making "
    "any health decision."
)

# Image encoding
IMAGE_MIME_TYPE = "image/jpeg"
IMAGE_FORMAT = "JPEG"
DEFAULT_JPEG_QUALITY = 80
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024

# Camera
DEFAULT_CAMERA_INDEX = 0
DEFAULT_CAMERA_WIDTH = 1920
DEFAULT_CAMERA_HEIGHT = 1080

# Remote analysis
CLAUDE_VISION_MODEL = "claude-sonnet-4-5"
OPENAI_VISION_MODEL = "gpt-4o"
CLAUDE_MAX_TOKENS = 2048
DEFAULT_ANALYSIS_TIMEOUT = 60
ANALYSIS_LANGUAGE = "Arabic"
ANALYSIS_SCHEMA_NAME = "report_imaging_analysis"
ANALYSIS_SCHEMA_DESCRIPTION = "Report the structured interpretation of a medical imaging photograph."
ANALYSIS_INSTRUCTION = (
    "You are a world-class radiologist working inside the X-Ray with Blue system. "
    "Analyze this image with high medical precision.\n"
    f"Reply exclusively in {ANALYSIS_LANGUAGE}, as JSON.\n"
    "Required details:\n"
    "1. The imaging type (for example: hand X-ray, chest CT).\n"
    "2. The name of the imaged organ.\n"
    "3. The key medical findings and observations.\n"
    "4. A list of precise professional details a specialist would notice."
)

# Telegram
TELEGRAM_ACTION_INTERVAL: float = 4.0
CMD_NEW = "new"
CMD_EXPORT = "export"
CMD_STATUS = "status"
CMD_HELP = "help"
EXPORT_FILENAME = "blue-scan-%03d.md"

# Log messages
MSG_STARTING = "Starting X-Ray with Blue (%s)…"
MSG_BACKEND = "Vision backend: %s"
MSG_TRANSITION = "Session %s: %s → %s"
MSG_EVENT_IGNORED = "Session %s: ignored %s in state %s"
MSG_STALE_COMPLETION = "Session %s: discarded stale analysis completion (episode %d)"
MSG_SESSION_FAILED = "Session %s failed [%s]: %s"
MSG_ANALYSIS_CRASHED = "Unexpected error during analysis"
MSG_CAMERA_OPENED = "Camera opened (%dx%d hint)"
MSG_CAMERA_RELEASED = "Camera released"
MSG_DEVICE_LOST = "Camera lost during capture [DeviceUnavailable]: %s"
MSG_CAMERA_ABANDONED = "Camera open finished after the request was cancelled, releasing it"
MSG_BLOCKED_CHAT = "Blocked update from chat_id: %s"
MSG_SEND_FAIL = "Telegram delivery failed: %s"
MSG_RENDER_FAIL = "Presenter failed to render state %s"

# Error details (internal, attached to exceptions)
ERR_EMPTY_IMAGE = "image payload is empty"
ERR_WRONG_MIME = "expected %s, got %s"
ERR_FILE_MISSING = "file not found: %s"
ERR_TOO_LARGE = "upload is %d bytes, limit is %d"
ERR_NOT_AN_IMAGE = "not a recognized image: %s"
ERR_CAMERA_OPEN = "could not open camera %d"
ERR_CAMERA_BUSY = "camera stream already open for this session"
ERR_CAMERA_CLOSED = "camera stream already released"
ERR_FRAME_READ = "could not read a frame from camera %d"
ERR_FRAME_ENCODE = "could not encode captured frame"
ERR_NO_STRUCTURED_OUTPUT = "no structured output in service response"
ERR_TIMEOUT = "analysis timed out after %ss"

# User-facing messages
MSG_ANALYSIS_FAILED = (
    "Sorry, we could not analyze the image. Make sure the scan is clear and try again."
)
MSG_INVALID_IMAGE = "That file is not a usable image. Please choose another scan."
MSG_CAMERA_UNAVAILABLE = "Please enable camera permissions to continue."
MSG_IDLE = "Ready. Upload a scan or open the camera to begin."
MSG_CAMERA_LIVE = "Camera is live."
MSG_CAMERA_PROMPT = "Press Enter to capture, or type q to cancel: "
MSG_ANALYZING = "Blue is thinking…"
MSG_BUSY = "An analysis is already in progress. Please wait for the result."
MSG_NOTHING_TO_EXPORT = "There is no result to export yet. Send a scan first."
MSG_NEW_SESSION = "Session cleared. Send a new scan whenever you are ready."
MSG_NOT_RESET = "Nothing to clear right now."
MSG_STATUS = "Session %s\n  State : %s\n  Scans : %d"
MSG_EXPORTED = "Report written to %s"

MSG_HELP = (
    "X-Ray with Blue — structured reading of medical imaging photos\n"
    "\n"
    "Send a photo (or an image file) of a scan to analyze it.\n"
    "\n"
    "Commands:\n"
    "  /new     — clear the current result and start over\n"
    "  /export  — download the current report\n"
    "  /status  — show the session state\n"
    "  /help    — show this message\n"
)
