#!/usr/bin/env python3
"""
run_demo.py - End-to-end demo for the FurEver orders service
- Places an order as the demo customer (run scripts/seed.py first)
- Walks it Pending -> Processing -> Shipped -> Delivered as admin
- Shows customer and admin notifications, stock alerts and inventory summary
- Cancels a second order and shows that a shipped order can't be canceled
- Prints notification emails from MailHog (if available)
"""

import json
import os
from typing import Any, Dict, List, Optional

import jwt
import requests


class DemoRunner:
    def __init__(self):
        self.base_url = os.getenv("ORDERS_BASE", "http://localhost:8000")
        self.api = f"{self.base_url}/api/v1"
        self.mailhog_api = "http://localhost:8025/api/v2/messages"
        self.secret = os.getenv("JWT_SECRET", "devsecret")

        self.admin_id = "demo-admin"
        self.cust_id = "demo-customer"
        self.admin_hdrs = self.bearer(self.admin_id, "admin")
        self.cust_hdrs = self.bearer(self.cust_id, "customer")

    # ---------- helpers ----------
    def bearer(self, user_id: str, role: str) -> Dict[str, str]:
        token = jwt.encode({"sub": user_id, "role": role, "type": "access"}, self.secret, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    def show_step(self, title: str):
        print(f"\n=== {title} ===")

    def call_api(
        self,
        method: str,
        url: str,
        headers: Optional[Dict] = None,
        data: Optional[Any] = None,
        expected_status: List[int] = [200, 201],
        quiet: bool = False,
        timeout: int = 30,
    ):
        if not quiet:
            print(f"\n-> {method} {url}")
            if data is not None:
                print(f"   Body: {json.dumps(data, indent=2)}")

        try:
            resp = requests.request(method=method, url=url, headers=headers, json=data, timeout=timeout)
        except requests.exceptions.RequestException as e:
            if not quiet:
                print(f"   Error: \033[91m{e}\033[0m")
            return {"status": None, "data": None, "error": str(e)}

        if not quiet:
            status_color = "\033[92m" if resp.status_code in expected_status else "\033[93m"
            print(f"   Status: {status_color}{resp.status_code}\033[0m")
        try:
            js = resp.json()
        except json.JSONDecodeError:
            return {"status": resp.status_code, "data": None}
        if not quiet:
            print(json.dumps(js, indent=2))
        return {"status": resp.status_code, "data": js}

    def place_order(self, product_id: str, name: str, price: float, quantity: int) -> Optional[str]:
        res = self.call_api("POST", f"{self.api}/orders", headers=self.cust_hdrs, data={
            "orderItems": [{"_id": product_id, "name": name, "price": price, "quantity": quantity}],
            "shippingAddress1": "12 Bark Street",
            "shippingAddress2": "Unit 4",
            "phone": "555-0101",
            "paymentMethod": "Cash on Delivery",
        }, expected_status=[201])
        return (res.get("data") or {}).get("id")

    def set_status(self, order_id: str, status: str, expected_status: List[int] = [200]):
        return self.call_api("PUT", f"{self.api}/orders/{order_id}", headers=self.admin_hdrs,
                             data={"status": status}, expected_status=expected_status)

    def show_inbox(self, user_id: str, headers: Dict[str, str]):
        res = self.call_api("GET", f"{self.api}/notifications/user/{user_id}", headers=headers, quiet=True)
        rows = res.get("data") or []
        print(f"  {user_id}: {len(rows)} notification(s)")
        for n in rows:
            print(f"    [{'read' if n['read'] else 'new '}] {n['title']}: {n['message']}")

    # ---------- flow ----------
    def run_demo(self):
        print("Starting FurEver Orders Demo")
        print("=" * 50)

        self.show_step("Preflight: service health")
        health = self.call_api("GET", f"{self.base_url}/health", quiet=True)
        if health.get("status") != 200:
            print(f"\033[91mOrders service not reachable at {self.base_url}\033[0m")
            return
        print("  - orders -> \033[92mOK\033[0m")

        self.show_step("Customer: place order (3 catnip mice, stock is 3)")
        order_id = self.place_order("catnip-mouse", "Catnip Mouse", 3.50, 3)
        if not order_id:
            print("Order was not created; did you run scripts/seed.py?")
            return

        self.show_step("Admin: illegal jump Pending -> Delivered")
        self.set_status(order_id, "Delivered", expected_status=[409])

        for status in ("Processing", "Shipped", "Delivered"):
            self.show_step(f"Admin: move order to {status}")
            self.set_status(order_id, status)

        self.show_step("Inboxes")
        self.show_inbox(self.cust_id, self.cust_hdrs)
        self.show_inbox(self.admin_id, self.admin_hdrs)

        self.show_step("Admin: inventory summary")
        self.call_api("GET", f"{self.api}/inventory/summary", headers=self.admin_hdrs)

        self.show_step("Customer: place and cancel a second order")
        second = self.place_order("kibble-5kg", "Chicken Kibble 5kg", 24.99, 1)
        if second:
            self.call_api("PUT", f"{self.api}/orders/{second}/cancel", headers=self.cust_hdrs)

        self.show_step("Customer: cancel a shipped order (expect 409)")
        third = self.place_order("rope-tug", "Rope Tug Toy", 7.99, 1)
        if third:
            self.set_status(third, "Processing")
            self.set_status(third, "Shipped")
            self.call_api("PUT", f"{self.api}/orders/{third}/cancel", headers=self.cust_hdrs,
                          expected_status=[409])

        self.show_step("Customer: mark all notifications read")
        self.call_api("PUT", f"{self.api}/notifications/user/{self.cust_id}/read-all", headers=self.cust_hdrs)

        self.show_step("Notifications: fetch emails from MailHog (optional)")
        try:
            r = requests.get(self.mailhog_api + "?limit=5", timeout=5)
            if r.status_code == 200:
                data = r.json()
                print(f"Found {data.get('total', 0)} emails. Showing up to 5 recent:")
                for i, m in enumerate(data.get("items", []), 1):
                    headers = m.get("Content", {}).get("Headers", {})
                    to = ", ".join(headers.get("To") or [])
                    subj = (headers.get("Subject") or [""])[0]
                    print(f"  {i}. To: {to} | Subject: {subj}")
            else:
                print("MailHog not reachable or returned non-200.")
        except requests.exceptions.RequestException:
            print("MailHog not reachable. Skipping.")

        print("\n\033[92m=== DEMO COMPLETE ===\033[0m")


if __name__ == "__main__":
    DemoRunner().run_demo()
