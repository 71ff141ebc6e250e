#!/usr/bin/env python3
"""
Storefront E2E smoke tests against a running deployment.

Run:
  python e2e_storefront.py

Optional env:
  STOREFRONT_BASE=http://localhost:5000
  ADMIN_EMAIL=admin@minishop.com
  ADMIN_PASSWORD=admin123
  SEED_SECRET=dev-seed-key
  TIMEOUT_SECONDS=30
  DEBUG=1
"""

from __future__ import annotations

import os
import sys
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests


# =========================
# Simple CLI UI (ANSI)
# =========================

class Style:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    BOX_LINE = "─"
    BOX_VERT = "│"
    BOX_TL = "┌"
    BOX_TR = "┐"
    BOX_BL = "└"
    BOX_BR = "┘"


def boxed(text: str, color: str):
    line = Style.BOX_LINE * (len(text) + 2)
    print(f"\n{color}{Style.BOX_TL}{line}{Style.BOX_TR}{Style.RESET}")
    print(f"{color}{Style.BOX_VERT} {Style.BOLD}{text}{Style.RESET}{color} {Style.BOX_VERT}{Style.RESET}")
    print(f"{color}{Style.BOX_BL}{line}{Style.BOX_BR}{Style.RESET}")


def info(msg: str):
    print(f"{Style.CYAN}ℹ {msg}{Style.RESET}")


def warn(msg: str):
    print(f"{Style.YELLOW}⚠ {msg}{Style.RESET}")


def ok(msg: str):
    print(f"{Style.GREEN}✔ {msg}{Style.RESET}")


def fail(msg: str):
    print(f"{Style.RED}✘ {msg}{Style.RESET}")


# =========================
# Config
# =========================

STOREFRONT_BASE = os.getenv("STOREFRONT_BASE", "http://localhost:5000").rstrip("/")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@minishop.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
SEED_SECRET = os.getenv("SEED_SECRET", "dev-seed-key")
TIMEOUT_SECONDS = int(os.getenv("TIMEOUT_SECONDS", "30"))
DEBUG = os.getenv("DEBUG", "0").strip().lower() in {"1", "true", "yes"}

WIDGET = {"id": 1, "name": "Widget", "price": 10.00, "quantity": 3, "category": "Electronics"}


def debug(msg: str):
    if DEBUG:
        print(f"{Style.GRAY}… {msg}{Style.RESET}")


@dataclass
class CheckResult:
    name: str
    success: bool
    details: str = ""
    scenario: str = ""


# =========================
# HTTP helpers
# =========================

def http(method: str, path: str, token: Optional[str] = None, **kwargs) -> requests.Response:
    kwargs.setdefault("timeout", 8)
    if token:
        kwargs.setdefault("headers", {})["Authorization"] = f"Bearer {token}"
    url = f"{STOREFRONT_BASE}/api{path}"
    debug(f"{method} {url} json={kwargs.get('json')}")
    return requests.request(method, url, **kwargs)


def wait_for_health() -> Optional[Dict[str, Any]]:
    start = time.time()
    while time.time() - start < TIMEOUT_SECONDS:
        try:
            resp = http("GET", "/health")
            if resp.status_code == 200:
                body = resp.json()
                ok(f"Storefront is up (database {body.get('database')}).")
                return body
        except requests.RequestException as e:
            debug(f"not ready: {e}")
        time.sleep(1)
    fail(f"Storefront did not become healthy in {TIMEOUT_SECONDS} seconds.")
    return None


def check(name: str, scenario: str, condition: bool, details: str) -> CheckResult:
    (ok if condition else fail)(f"{name}: {details}")
    return CheckResult(name, condition, details, scenario)


def checkout(payment_method: str) -> requests.Response:
    payload = {
        "items": [WIDGET],
        "customer": {"name": "A", "email": f"e2e-{uuid.uuid4().hex[:8]}@example.com", "address": "1 Rd"},
        "total": 30.00,
        "paymentMethod": payment_method,
    }
    return http("POST", "/orders", json=payload)


def admin_token() -> Optional[str]:
    http("POST", "/auth/seed-admin", headers={"X-Seed-Secret": SEED_SECRET}, json={})
    resp = http("POST", "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    if resp.status_code != 200:
        fail(f"Login failed: HTTP {resp.status_code} {resp.text}")
        return None
    return resp.json().get("token")


# =========================
# Scenarios
# =========================

def scenario_checkout() -> List[CheckResult]:
    scenario = "Scenario 1 - Checkout"
    boxed(scenario, Style.BLUE)
    results: List[CheckResult] = []

    for method, expected_payment in (("card", "completed"), ("cod", "pending")):
        resp = checkout(method)
        if resp.status_code != 201:
            results.append(check(f"Checkout ({method})", scenario, False, f"HTTP {resp.status_code}: {resp.text}"))
            continue
        order = resp.json()["order"]
        items = order.get("items", [])
        results.append(check(
            f"Checkout ({method})",
            scenario,
            len(items) == 1 and items[0]["subtotal"] == 30.0 and order["status"] == "pending"
            and order["payment_status"] == expected_payment,
            f"status={order['status']} payment={order['payment_status']} items={len(items)}",
        ))

    resp = http("POST", "/orders", json={"items": [], "customer": {"name": "A", "email": "a@b.com", "address": "1 Rd"}, "total": 0})
    results.append(check("Empty cart rejected", scenario, resp.status_code == 400, f"HTTP {resp.status_code}"))
    return results


def scenario_admin(token: str) -> List[CheckResult]:
    scenario = "Scenario 2 - Admin"
    boxed(scenario, Style.BLUE)
    results: List[CheckResult] = []

    resp = http("GET", "/orders")
    results.append(check("Orders need a token", scenario, resp.status_code == 401, f"HTTP {resp.status_code}"))

    resp = http("GET", "/orders", token=token)
    orders = resp.json() if resp.status_code == 200 else []
    stamps = [o.get("created_at") or "" for o in orders]
    results.append(check("Orders newest first", scenario, stamps == sorted(stamps, reverse=True), f"{len(orders)} order(s)"))

    if orders:
        order_id = orders[0]["id"]
        resp = http("PATCH", f"/orders/{order_id}/status", token=token, json={"status": "bogus"})
        results.append(check("Invalid status rejected", scenario, resp.status_code == 400, f"HTTP {resp.status_code}"))
        resp = http("PATCH", f"/orders/{order_id}/status", token=token, json={"status": "shipped"})
        results.append(check("Status moved to shipped", scenario, resp.status_code in (200, 503), f"HTTP {resp.status_code}"))

    resp = http("GET", "/analytics", token=token)
    body = resp.json() if resp.status_code == 200 else {}
    results.append(check("Dashboard served", scenario, "totalOrders" in body, f"totalOrders={body.get('totalOrders')}"))
    return results


# =========================
# Summary
# =========================

def print_results(results: List[CheckResult]):
    print(f"\n{Style.BOLD}================ TEST RESULTS ================ {Style.RESET}")
    passed = sum(1 for r in results if r.success)
    for r in results:
        color = Style.GREEN if r.success else Style.RED
        print(f"{color}{'✅' if r.success else '❌'} {r.name}{Style.RESET}")
        if r.details:
            print(f"    {Style.DIM}{r.details}{Style.RESET}")
    failed = len(results) - passed
    print(f"Total checks: {len(results)}  |  Passed: {Style.GREEN}{passed}{Style.RESET}  |  Failed: {Style.RED}{failed}{Style.RESET}")
    if failed:
        print(f"{Style.YELLOW}- If every write says 'demo mode', the service cannot reach DATABASE_URL.{Style.RESET}")
        print(f"{Style.YELLOW}- POST /api/init-db creates missing tables.{Style.RESET}")
    return failed


def main():
    boxed(" Storefront E2E Smoke Tests ", Style.CYAN)
    health = wait_for_health()
    if health is None:
        sys.exit(1)
    if health.get("database") != "connected":
        warn("Database disconnected: responses will come from demo mode.")

    results: List[CheckResult] = []
    results.extend(scenario_checkout())
    token = admin_token()
    if token:
        results.extend(scenario_admin(token))
    else:
        results.append(CheckResult("Admin login", False, "no token", "Scenario 2 - Admin"))

    sys.exit(1 if print_results(results) else 0)


if __name__ == "__main__":
    main()
