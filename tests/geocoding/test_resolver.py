import logging

from src.field_service.field_service.geocoding.resolver import LocationResolver, coordinates_label


class FixedGeocoder:
    def __init__(self, address):
        self.address = address

    def reverse_geocode(self, latitude, longitude):
        return self.address


class BrokenGeocoder:
    def reverse_geocode(self, latitude, longitude):
        raise TimeoutError("geocoding service too slow")


def test_geocoded_address_wins_over_caller_address():
    resolver = LocationResolver(FixedGeocoder("MG Road, Bengaluru"))

    assert resolver.resolve(12.97, 77.59, "somewhere") == "MG Road, Bengaluru"


def test_without_geocoder_caller_address_then_coordinates():
    resolver = LocationResolver()

    assert resolver.resolve(12.97, 77.59, "Depot") == "Depot"
    assert resolver.resolve(12.97, 77.59) == "12.97, 77.59"


def test_geocoder_failure_falls_back_and_warns(caplog):
    resolver = LocationResolver(BrokenGeocoder())

    with caplog.at_level(logging.WARNING):
        assert resolver.resolve(1.5, 2.5, "Depot") == "Depot"
        assert resolver.resolve(1.5, 2.5) == coordinates_label(1.5, 2.5)

    assert "Reverse geocoding failed" in caplog.text


def test_empty_geocoder_answer_uses_coordinates():
    resolver = LocationResolver(FixedGeocoder(None))

    assert resolver.resolve(1.5, 2.5, "Depot") == "1.5, 2.5"
