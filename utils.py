# utils.py

import random

# MEMORY CONFIGURATION #
DEFAULT_TOTAL_MEMORY = 1024  # KB
DEFAULT_PAGE_SIZE = 64       # KB
MIN_PROCESS_SIZE = 16        # KB
MAX_PROCESS_SIZE = 256       # KB
MIN_PRIORITY = 1
MAX_PRIORITY = 10

# DEMO PROCESS NAMES #
PROCESS_NAMES = [
    "Browser", "TextEditor", "MediaPlayer", "Calculator", "FileManager",
    "Compiler", "Database", "WebServer", "ImageEditor", "GameEngine",
    "Antivirus", "Messenger", "DownloadManager", "VideoEncoder", "BackupTool",
]

# COLOR LEGEND #
FREE_COLOR = "#f0f0f0"
PROCESS_COLORS = [
    "#ffb6c1", "#add8e6", "#90ee90", "#ffdab9", "#dda0dd",
    "#ffffe0", "#afeeee", "#ffc0cb", "#e6e6fa", "#faf0e6",
]
SEGMENT_COLORS = {
    "CODE": "#ffc8c8",
    "DATA": "#c8ffc8",
    "STACK": "#c8c8ff",
}


def get_color(allocated, pid=None):
    """Return a color for allocated/free blocks."""
    if not allocated:
        return FREE_COLOR
    return get_process_color(pid or 0)


def get_process_color(pid):
    return PROCESS_COLORS[pid % len(PROCESS_COLORS)]


def get_segment_color(kind):
    return SEGMENT_COLORS.get(kind.upper(), FREE_COLOR)


def format_memory_size(size_kb):
    if size_kb >= 1024:
        return f"{size_kb / 1024:.1f} MB"
    return f"{size_kb} KB"


def format_percentage(value):
    return f"{value:.1f}%"


def format_address(address):
    return f"0x{address:04X}"


def random_process_params(rng=None, min_size=MIN_PROCESS_SIZE, max_size=MAX_PROCESS_SIZE):
    """Pick a (name, size, priority) triple for a demo process."""
    rng = rng or random
    name = rng.choice(PROCESS_NAMES)
    size = rng.randint(min_size, max_size)
    priority = rng.randint(MIN_PRIORITY, MAX_PRIORITY)
    return name, size, priority
