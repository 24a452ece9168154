"""camerabot -- Telegram remote control for a camera script.

This package relays chat commands from allow-listed Telegram users to a
single external script (typically an OpenCV capture script on a
Raspberry Pi camera) and sends the script's output back as a photo,
a video, or plain text depending on the sniffed content type.
"""

__version__ = "0.1.0"
