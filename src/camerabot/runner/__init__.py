"""Script execution and output classification for camerabot.

Public API:
    ScriptRunner -- Runs the configured script, capturing combined output
    detect_content_type -- Sniff a MIME type from leading bytes
    classify_output -- Map script output to an image/video/text branch
"""

from camerabot.runner.script import ScriptRunner
from camerabot.runner.sniff import classify_output, detect_content_type

__all__ = ["ScriptRunner", "classify_output", "detect_content_type"]
