import base64


class RecordingLogger:
    """RequestLogger that keeps every call in memory."""

    def __init__(self):
        self.proxied = []
        self.rejected = []
        self.errors = []

    def log_proxied(self, method, target, status, *, identity, headers):
        self.proxied.append((method, target, status, identity, headers))

    def log_rejected(self, stage, status, message, *, identity):
        self.rejected.append((stage, status, message, identity))

    def log_error(self, route, status, message):
        self.errors.append((route, status, message))


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def basic_auth(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"
