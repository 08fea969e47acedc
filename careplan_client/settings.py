import os
from pathlib import Path

import httpx

BASE_DIR = Path.cwd()

# Remote intake service
API_BASE_URL = os.getenv('CAREPLAN_API_URL', 'https://lamar-backend-api.onrender.com/api')

# Timeouts (seconds)
REQUEST_TIMEOUT = float(os.getenv('CAREPLAN_REQUEST_TIMEOUT', '30'))
CONNECT_TIMEOUT = float(os.getenv('CAREPLAN_CONNECT_TIMEOUT', '8'))
# 单次 await 的硬上限，transport 自身没超时也不会卡死状态机
DEADLINE = float(os.getenv('CAREPLAN_DEADLINE', '60'))

# Care plan 下载
FETCH_ARTIFACT = os.getenv('CAREPLAN_FETCH_ARTIFACT', '1') == '1'
DOWNLOAD_DIR = Path(os.getenv('CAREPLAN_DOWNLOAD_DIR', str(BASE_DIR / 'care_plans')))


def build_timeout():
    return httpx.Timeout(REQUEST_TIMEOUT, connect=CONNECT_TIMEOUT)
