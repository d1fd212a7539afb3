import time

from sqlalchemy import text

from nexus.extensions import db
from nexus.utils.dates import utcnow


class HealthService:
    @staticmethod
    def get_health_status():
        started = time.monotonic()
        database = {"status": "connected"}
        try:
            db.session.execute(text("SELECT 1"))
        except Exception as e:
            db.session.rollback()
            database = {"status": "error", "error": str(e)}
        database["latencyMs"] = round((time.monotonic() - started) * 1000, 2)

        return {
            "status": "ok" if database["status"] == "connected" else "error",
            "timestamp": utcnow().isoformat(),
            "services": {"database": database},
        }
