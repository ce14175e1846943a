from pathlib import Path
from datetime import datetime
from typing import Optional

from koperasi.core import config


def write_audit_log(actor: str, action: str, details: str = "", logs_dir: Optional[Path] = None):
    logs_dir = logs_dir or config.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    month_str = datetime.now().strftime("%Y_%m")
    log_file = logs_dir / f"audit_{month_str}.log"
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(f"{ts} | {actor} | {action} | {details}\n")
