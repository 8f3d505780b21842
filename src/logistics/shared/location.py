"""Location value object shared by shipments and vehicles."""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from logistics.domain import logistics


@logistics.value_object
class Location:
    """A point on the map, optionally carrying a postal address.

    Latitude ranges from -90 to 90, longitude from -180 to 180. Locations are
    immutable; anything that hands one out returns a copy.
    """

    lat = Float(required=True)
    lng = Float(required=True)
    address = String(max_length=255)
    city = String(max_length=100)
    country = String(max_length=100)

    @invariant.post
    def coordinates_within_range(self):
        if self.lat is None or self.lng is None:
            raise ValidationError({"coordinates": ["Both lat and lng are required"]})
        if not -90.0 <= self.lat <= 90.0:
            raise ValidationError({"lat": [f"Latitude {self.lat} is out of range"]})
        if not -180.0 <= self.lng <= 180.0:
            raise ValidationError({"lng": [f"Longitude {self.lng} is out of range"]})

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        """Build a Location from a loose mapping (API payloads, job payloads)."""
        if data is None or data.get("lat") is None or data.get("lng") is None:
            raise ValidationError({"coordinates": ["Both lat and lng are required"]})
        return cls(
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            address=data.get("address"),
            city=data.get("city"),
            country=data.get("country"),
        )

    def clone(self) -> "Location":
        return Location(
            lat=self.lat,
            lng=self.lng,
            address=self.address,
            city=self.city,
            country=self.country,
        )

    def as_dict(self) -> dict:
        data = {"lat": self.lat, "lng": self.lng}
        for key in ("address", "city", "country"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data
