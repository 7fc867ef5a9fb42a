"""
SMS Gateway Mock Server — accepts the payload NotificationService.send_sms posts.
Run: python sms_gateway_server.py
Listens on port 8003. Every message is printed, so OTPs can be read off the console.
"""

import json
import re
import uuid
from datetime import datetime
from http.server import BaseHTTPRequestHandler, HTTPServer

INDIAN_MOBILE = re.compile(r"^[6-9]\d{9}$")


class SMSHandler(BaseHTTPRequestHandler):
    def do_POST(self):
        if self.path != "/send":
            self._respond(404, {"error": "Not found"})
            return

        length = int(self.headers.get("Content-Length", 0))
        try:
            body = json.loads(self.rfile.read(length) or b"{}")
        except ValueError:
            self._respond(400, {"error": "Body must be JSON"})
            return

        phone, message = body.get("phone", ""), body.get("message", "")
        if not INDIAN_MOBILE.match(phone) or not message:
            self._respond(422, {"error": "phone and message are required"})
            return

        print(f"[{datetime.now():%H:%M:%S}] SMS → {phone}: {message}", flush=True)
        self._respond(200, {"messageId": f"SMS-{uuid.uuid4().hex[:10].upper()}", "status": "queued"})

    def _respond(self, code, data):
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(data).encode())

    def log_message(self, *_):
        pass


if __name__ == "__main__":
    server = HTTPServer(("0.0.0.0", 8003), SMSHandler)
    print("SMS Gateway Mock running on :8003")
    server.serve_forever()
