"""Great-circle distance and bounding-box math. Distances are in meters."""
import math
from decimal import Decimal
from typing import NamedTuple

from jemzy.config import POLE_LATITUDE_LIMIT
from jemzy.errors import InvalidArgument

EARTH_RADIUS_M = 6_371_000.0
METERS_PER_DEGREE = 111_320.0
METERS_PER_FOOT = 0.3048
FEET_PER_MILE = 5280


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, point: GeoPoint) -> bool:
        if not self.min_lat <= point.latitude <= self.max_lat:
            return False
        return any(lo <= point.longitude <= hi for lo, hi in longitude_ranges(self))


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points on a sphere of radius EARTH_RADIUS_M."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = math.radians(b.latitude - a.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push h just past 1 for antipodal points
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def bounding_box(origin: GeoPoint, radius_m: float) -> BoundingBox:
    """
    Square lat/lng box around `origin` for SQL pre-filtering.

    1 degree of latitude is taken as 111,320 m and 1 degree of longitude as
    111,320 * cos(latitude) m. Latitudes are clamped to [-90, 90]. The
    longitude span becomes the full circle when the origin is beyond
    POLE_LATITUDE_LIMIT, when the box reaches a pole, or when the half-span
    would reach 180 degrees. Longitudes are not wrapped here; see
    `longitude_ranges`.
    """
    d_lat = radius_m / METERS_PER_DEGREE
    min_lat = max(-90.0, origin.latitude - d_lat)
    max_lat = min(90.0, origin.latitude + d_lat)

    cos_lat = math.cos(math.radians(origin.latitude))
    full_circle = (
        abs(origin.latitude) > POLE_LATITUDE_LIMIT
        or min_lat <= -90.0
        or max_lat >= 90.0
    )
    if not full_circle:
        d_lng = radius_m / (METERS_PER_DEGREE * cos_lat)
        full_circle = d_lng >= 180.0

    if full_circle:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    return BoundingBox(min_lat, max_lat, origin.longitude - d_lng, origin.longitude + d_lng)


def longitude_ranges(box: BoundingBox) -> list[tuple[float, float]]:
    """Split the box's longitude span into ranges inside [-180, 180]."""
    if box.max_lng - box.min_lng >= 360.0:
        return [(-180.0, 180.0)]
    if box.min_lng < -180.0:
        return [(box.min_lng + 360.0, 180.0), (-180.0, box.max_lng)]
    if box.max_lng > 180.0:
        return [(box.min_lng, 180.0), (-180.0, box.max_lng - 360.0)]
    return [(box.min_lng, box.max_lng)]


def parse_coordinate(value) -> float:
    """Normalize a stored or submitted coordinate (float, int, Decimal or numeric string)."""
    if isinstance(value, bool) or value is None:
        raise InvalidArgument(f"coordinate must be a number, got {value!r}")
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise InvalidArgument(f"coordinate must be a number, got {value!r}") from None
    else:
        raise InvalidArgument(f"coordinate must be a number, got {value!r}")

    if not math.isfinite(number):
        raise InvalidArgument(f"coordinate must be finite, got {value!r}")
    return number


def make_point(lat, lng) -> GeoPoint:
    """Build a validated GeoPoint from raw latitude/longitude values."""
    latitude = parse_coordinate(lat)
    longitude = parse_coordinate(lng)
    if not -90.0 <= latitude <= 90.0:
        raise InvalidArgument(f"latitude out of range: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidArgument(f"longitude out of range: {longitude}")
    return GeoPoint(latitude, longitude)


def parse_radius(value) -> float:
    """Radius in meters; must be a finite positive number."""
    try:
        radius = parse_coordinate(value)
    except InvalidArgument:
        raise InvalidArgument(f"radius must be a finite number, got {value!r}") from None
    if radius <= 0:
        raise InvalidArgument(f"radius must be positive, got {value!r}")
    return radius


def feet_to_meters(feet: float) -> float:
    return feet * METERS_PER_FOOT


def meters_to_feet(meters: float) -> float:
    return meters / METERS_PER_FOOT
