"""ASGI entrypoint for the BLE attendance API."""

from ble_attendance.api.app import create_app
from ble_attendance.containers import build_container

app = create_app(build_container())
