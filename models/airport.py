from models.db import db


class Airport(db.Model):
    __tablename__ = "airports"

    id = db.Column(db.Integer, primary_key=True)
    iata_code = db.Column(db.String(3), nullable=True, index=True)
    icao_code = db.Column(db.String(4), nullable=True, index=True)
    name = db.Column(db.String(160), nullable=False)
    municipality = db.Column(db.String(120), nullable=True)

    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    time_zone = db.Column(db.String(64), nullable=False, default="UTC")

    @property
    def code(self) -> str:
        return self.iata_code or self.icao_code or "N/A"

    @property
    def display_name(self) -> str:
        """City-first label, e.g. "Lagos (DNMM)"."""
        code = self.icao_code or self.iata_code or ""
        name = self.municipality or self.name
        return f"{name} ({code})" if code else name
