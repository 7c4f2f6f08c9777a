"""
Health checks.

- Liveness: the process is up; no dependencies consulted
- Readiness: the database answers through the connection pool
"""
from datetime import datetime, timezone
from typing import Any, Dict

import structlog

from emi_collection.database.connection import Database

logger = structlog.get_logger(__name__)


class HealthCheckError(Exception):
    """Raised when health check fails."""

    pass


class HealthCheck:
    """Health check service for the database dependency."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def check_database(self) -> Dict[str, Any]:
        """
        Check database connectivity.

        Returns:
            Dict[str, Any]: Database health status

        Raises:
            HealthCheckError: If database check fails
        """
        try:
            await self.database.ping()
        except Exception as e:
            logger.error("database_health_check_failed", error=str(e))
            raise HealthCheckError("Database health check failed") from e

        return {
            "status": "healthy",
            "service": "database",
            "message": "Database connection successful",
        }

    @staticmethod
    def liveness() -> Dict[str, Any]:
        """
        Liveness payload.

        Returns:
            Dict[str, Any]: ``{"status": "OK", "timestamp": <ISO 8601>}``
        """
        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        return {"status": "OK", "timestamp": timestamp.replace("+00:00", "Z")}

    async def readiness(self) -> Dict[str, Any]:
        """
        Readiness status; healthy only if every dependency check passes.

        Returns:
            Dict[str, Any]: Overall status and per-dependency checks
        """
        try:
            database = await self.check_database()
        except HealthCheckError as e:
            return {
                "status": "unhealthy",
                "checks": {
                    "database": {
                        "status": "unhealthy",
                        "service": "database",
                        "error": str(e),
                    }
                },
            }
        return {"status": "healthy", "checks": {"database": database}}
