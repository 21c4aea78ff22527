import random, time, threading, requests

BASE = "http://127.0.0.1:5000"

QR_CODES = ["QR-WC-002-EFGH5678", "QR-WC-003-IJKL9012"]
STATUSES = ["started", "in-progress", "on-hold", "requires-review", "completed"]

def crew_loop(qr_code):
    r = requests.get(f"{BASE}/api/work-cards/qr/{qr_code}")
    print(qr_code, r.status_code)
    if r.status_code != 200:
        return
    card = r.json()
    progress = card["progressPercent"] or 0
    for status in STATUSES[:3]:
        progress = min(100, progress + random.randint(5, 20))
        body = {
            "status": status,
            "progressPercent": progress,
            "hoursWorked": round(random.uniform(0.5, 3.0), 1),
            "notes": f"Simulated {status} update",
            "materials": [{"name": "Fasteners", "quantity": random.randint(1, 50)}],
        }
        r = requests.post(f"{BASE}/api/work-cards/{card['id']}/complete", json=body)
        print(qr_code, status, r.status_code, r.json().get("hoursWorked"))
        time.sleep(random.uniform(0.3, 1.2))

threads = [threading.Thread(target=crew_loop, args=(q,)) for q in QR_CODES]
[t.start() for t in threads]
[t.join() for t in threads]

print(requests.get(f"{BASE}/api/dashboard/stats").json())
