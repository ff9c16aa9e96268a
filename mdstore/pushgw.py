# mdstore/pushgw.py
from __future__ import annotations

import os
from typing import Optional, Dict

from prometheus_client import CollectorRegistry, Counter, Gauge, push_to_gateway, pushadd_to_gateway

PGW_JOB_DEFAULT = "mdstore"


def _settings() -> Dict[str, str]:
    # read per call so the CLI and tests see the current environment
    return {
        "url": os.getenv("PUSHGATEWAY_URL", "").strip(),
        "job": os.getenv("PUSHGATEWAY_JOB", PGW_JOB_DEFAULT),
        "instance": os.getenv("PUSHGATEWAY_INSTANCE", ""),
        "mode": os.getenv("PUSHGATEWAY_MODE", "pushadd").lower(),
        "timeout": os.getenv("PUSHGATEWAY_TIMEOUT", "2.0"),
    }


def _grouping(instance: str, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    g: Dict[str, str] = {}
    if instance:
        g["instance"] = instance
    if extra:
        g.update({k: str(v) for k, v in extra.items()})
    return g


def _safe_push(cfg: Dict[str, str], reg: CollectorRegistry, grouping: Dict[str, str]) -> None:
    """Best-effort push; a missing gateway must never fail a load or save."""
    try:
        timeout = float(cfg["timeout"])
        if cfg["mode"] == "push":
            push_to_gateway(cfg["url"], job=cfg["job"], registry=reg, grouping_key=grouping, timeout=timeout)
        else:
            pushadd_to_gateway(cfg["url"], job=cfg["job"], registry=reg, grouping_key=grouping, timeout=timeout)
    except Exception:
        pass


def _push(event: str, outcome: str, duration_s: Optional[float], extra_labels: Optional[Dict[str, str]]) -> bool:
    cfg = _settings()
    if not cfg["url"]:
        return False
    reg = CollectorRegistry()
    c = Counter("mdstore_events_total", "Total document load/save events", ["event", "outcome"], registry=reg)
    g = Gauge("mdstore_event_last_duration_seconds", "Last event duration (seconds)", ["event"], registry=reg)
    c.labels(event, outcome).inc()
    if duration_s is not None:
        g.labels(event).set(duration_s)
    _safe_push(cfg, reg, _grouping(cfg["instance"], extra_labels))
    return True


def push_load(outcome: str, duration_s: Optional[float] = None, extra_labels: Optional[Dict[str, str]] = None) -> bool:
    return _push("load", outcome, duration_s, extra_labels)


def push_save(outcome: str, duration_s: Optional[float] = None, extra_labels: Optional[Dict[str, str]] = None) -> bool:
    return _push("save", outcome, duration_s, extra_labels)


def push_orphans(count: int, extra_labels: Optional[Dict[str, str]] = None) -> bool:
    cfg = _settings()
    if not cfg["url"]:
        return False
    reg = CollectorRegistry()
    g = Gauge("mdstore_orphan_candidates", "Orphan assets found by the last save", registry=reg)
    g.set(count)
    _safe_push(cfg, reg, _grouping(cfg["instance"], extra_labels))
    return True
