"""Airport - static reference set drawn beneath every flight.

Loaded once at import, never mutated.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Airport:
    """Airport reference point labeled by its ICAO code."""

    code: str
    name: str
    lat: float
    lon: float

    @property
    def lon_lat(self) -> tuple[float, float]:
        """Return (lon, lat) tuple - GeoJSON/Pydeck order."""
        return (self.lon, self.lat)


AIRPORTS: tuple[Airport, ...] = (
    Airport(code="LLBG", name="Ben Gurion Intl", lat=32.011389, lon=34.886667),
    Airport(code="LLER", name="Ramon Intl", lat=29.723704, lon=35.01145),
    Airport(code="LLHA", name="Haifa", lat=32.809444, lon=35.043056),
    Airport(code="LLSD", name="Sde Dov", lat=32.114722, lon=34.781944),
    Airport(code="LLBS", name="Beersheba", lat=31.287, lon=34.723),
    Airport(code="LLET", name="Eilat (J. Hozman)", lat=29.561111, lon=34.960833),
    Airport(code="LLOV", name="Ovda", lat=29.940, lon=34.935),
    Airport(code="LLNV", name="Nevatim AFB", lat=31.207, lon=35.012),
    Airport(code="LLMG", name="Megiddo", lat=32.597, lon=35.228),
    Airport(code="LLHZ", name="Herzliya", lat=32.186, lon=34.835),
    Airport(code="LCRA", name="RAF Akrotiri", lat=34.5900, lon=32.9870),
    Airport(code="OLBA", name="Beirut Rafic Hariri Intl", lat=33.820889, lon=35.488389),
    Airport(code="OLKA", name="Rayak Air Base", lat=33.850, lon=35.987),
    Airport(code="OJAI", name="Queen Alia Intl (Amman)", lat=31.722556, lon=35.993214),
    Airport(code="OJAM", name="Amman-Marka Intl", lat=31.972, lon=35.991),
    Airport(code="OJAQ", name="King Hussein Intl (Aqaba)", lat=29.611, lon=35.018),
    Airport(code="OJMF", name="Mafraq", lat=32.356, lon=36.259),
    Airport(code="HEGR", name="El Gora Airport", lat=31.0686, lon=34.1296),
    Airport(code="ALJAWZAH", name="Al-Jawzah Airport", lat=31.7288, lon=52.3827),
    Airport(code="OSDI", name="Damascus Intl", lat=33.411, lon=36.516),
)
assert len({a.code for a in AIRPORTS}) == len(AIRPORTS), "Airport codes must be unique"
