"""Pydantic models for the visit tracking API."""

from pydantic import BaseModel

UNKNOWN = "Unknown"


class GeoResult(BaseModel):
    """Approximate location for a client IP."""

    ip: str
    country: str = UNKNOWN
    city: str = UNKNOWN
    postal: str | None = None
    provider: str | None = None

    @classmethod
    def unknown(cls, ip: str) -> "GeoResult":
        return cls(ip=ip)

    def record_fields(self, include_postal: bool) -> dict[str, str]:
        """Fields attached to a visit record, with sentinels for missing values."""
        fields = {"ip": self.ip, "country": self.country, "city": self.city}
        if include_postal:
            fields["postal"] = self.postal or UNKNOWN
        return fields


class TrackResponse(BaseModel):
    """Acknowledgment returned by POST /track."""

    message: str = "OK"


class VisitStats(BaseModel):
    """Aggregate figures shown on the dashboard."""

    total: int
    top_language: str | None = None
    languages: dict[str, int]
