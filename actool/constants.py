"""Constants used across the actool package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "actool"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME
DEFAULT_ENV_FILENAME = f"{APP_NAME}.env"

ENV_TOKEN = "TOKEN"
ENV_DEVICE_NO = "DEVICENO"
ENV_OPERATOR_NAME = "STUDENTNAME"

SERVICE_HOST = "es.sdtbu.edu.cn"
DEFAULT_GATEWAY_BASE_URL = f"https://{SERVICE_HOST}/hatch-api/api/sdgongshang"
FETCH_STATE_PATH = "/device/getDeviceByNo"
SUBMIT_COMMAND_PATH = "/device/operateDevice"

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_TICK_SECONDS = 1.0

# The service only answers requests that look like they come from its web client.
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36 NetType/WIFI "
        "MicroMessenger/7.0.20.1781(0x6700143B) WindowsWechat(0x63090c33)"
    ),
    "Accept": "*/*",
    "Accept-Language": "zh-CN,zh;q=0.9",
    "Origin": f"https://{SERVICE_HOST}",
    "Referer": f"https://{SERVICE_HOST}/",
}
