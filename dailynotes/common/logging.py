# dailynotes/common/logging.py
import logging, sys, time, uuid
from pythonjsonlogger.json import JsonFormatter
from flask import g, request

def setup_json_logging(app):
    # Root logger en INFO (DEBUG en dev via app.debug)
    level = logging.DEBUG if app.debug else logging.INFO
    root = logging.getLogger()
    root.handlers = []  # nettoie
    root.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    fmt = JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(request_id)s %(method)s %(path)s %(status)s %(latency_ms)s"
    )
    handler.setFormatter(fmt)
    root.addHandler(handler)

def request_id() -> str:
    return getattr(g, "request_id", "-")

def register_request_logging(app):
    @app.before_request
    def _assign_request_id_and_start_timer():
        # request id: X-Request-Id entrant ou généré
        rid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        g.request_id = rid
        g._start_time = time.time()

    @app.after_request
    def _log_request(resp):
        latency = int((time.time() - getattr(g, "_start_time", time.time())) * 1000)

        # expose le request id au client
        resp.headers.setdefault("X-Request-Id", request_id())

        logging.getLogger("dailynotes.request").info(
            "http_request",
            extra={
                "request_id": request_id(),
                "method": request.method,
                "path": request.path,
                "status": resp.status_code,
                "latency_ms": latency,
            },
        )
        return resp

    @app.teardown_request
    def _teardown(exc):
        if exc:
            logging.getLogger("dailynotes.error").error(
                "unhandled_exception",
                exc_info=exc,
                extra={"request_id": request_id()},
            )
