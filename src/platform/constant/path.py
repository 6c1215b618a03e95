from pathlib import Path
import tempfile

from src.platform.config.core_setting import settings


# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent

# Log directory
LOG_DIR = BASE_DIR / 'logs'

# Scratch root for rendered ticket artifacts (one private subdirectory per render)
TICKET_SCRATCH_ROOT = (
    Path(settings.TICKET_SCRATCH_DIR)
    if settings.TICKET_SCRATCH_DIR
    else Path(tempfile.gettempdir()) / 'concert_booking_tickets'
)
