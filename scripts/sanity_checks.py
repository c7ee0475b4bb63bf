import os
import sys

import requests


def check(endpoint: str, expected_status: int = 200) -> bool:
    url = f"{BASE_URL}{endpoint}"
    try:
        res = requests.get(url, timeout=10)
    except requests.RequestException:
        print(f"FAIL {endpoint}: request error")
        return False
    if res.status_code != expected_status:
        print(f"FAIL {endpoint}: HTTP {res.status_code}")
        return False
    print(f"OK   {endpoint}: HTTP {res.status_code}")
    return True


BASE_URL = os.getenv("PAC_API_BASE_URL", "http://127.0.0.1:8000/api")

ok = True
ok = check("/health") and ok
ok = check("/events") and ok
ok = check("/galeria/categorias") and ok
ok = check("/admin/dashboard/stats", expected_status=401) and ok

sys.exit(0 if ok else 1)
