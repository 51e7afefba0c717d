from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

FORMAT = "%(asctime)s %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO", report_dir: str | Path = "Report") -> Optional[Path]:
    """Configure root logging; at DEBUG also write everything to a file under ``report_dir``.

    Returns the path of the debug log file, if one was opened.
    """
    lvl = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=FORMAT)

    if str(level).upper() != "DEBUG":
        return None
    out_dir = Path(report_dir)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = out_dir / f"lpadapter_debug_{ts}.txt"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    except OSError as exc:
        # Console logging stays configured
        logging.getLogger(__name__).warning("cannot open debug log %s: %s", log_path, exc)
        return None
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(FORMAT))
    logging.getLogger().addHandler(fh)
    logging.getLogger(__name__).info("Writing DEBUG logs to %s", log_path)
    return log_path


__all__ = ["setup_logging"]
