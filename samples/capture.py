#!/usr/bin/env python3
"""Sample camera script: capture one frame and write it to stdout as JPEG.

camerabot runs this with no arguments and sniffs the bytes it prints:
JPEG/PNG output is sent as a photo, MP4 as a video, anything else as text.
"""

import sys

import cv2


def main() -> int:
    cap = cv2.VideoCapture(0)
    if not cap.isOpened():
        print("Failed to open camera device 0", file=sys.stderr)
        return 1
    try:
        ok, frame = cap.read()
    finally:
        cap.release()
    if not ok or frame is None:
        print("Failed to read frame from camera", file=sys.stderr)
        return 1

    ok, buffer = cv2.imencode(".jpg", frame)
    if not ok:
        print("Failed to encode frame", file=sys.stderr)
        return 1
    sys.stdout.buffer.write(buffer.tobytes())
    return 0


if __name__ == "__main__":
    sys.exit(main())
