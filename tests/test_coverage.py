import pytest

from salonbook import models
from salonbook.domain.coverage.geo import haversine_distance_km, is_within_radius
from salonbook.domain.coverage.schemas import CoverageZoneCreate, CoverageZoneUpdate, HomeServiceConfig
from salonbook.domain.coverage.service import CoverageResult, CoverageService
from salonbook.errors import NotFoundError

PARIS = (48.8566, 2.3522)
LYON = (45.7640, 4.8357)
VERSAILLES = (48.8049, 2.1204)


def test_distance_to_self_is_zero():
    assert haversine_distance_km(*PARIS, *PARIS) == 0


def test_paris_lyon_distance():
    distance = haversine_distance_km(*PARIS, *LYON)
    assert 380 <= distance <= 410
    assert haversine_distance_km(*LYON, *PARIS) == pytest.approx(distance)


def test_is_within_radius():
    assert is_within_radius(*PARIS, *VERSAILLES, 20)
    assert not is_within_radius(*PARIS, *VERSAILLES, 10)


def test_no_zones_falls_back_to_stylist_settings(db):
    service = CoverageService(db)
    assert service.check_coverage("stylist-1", *PARIS) == CoverageResult(covered=False, additional_fee=0)

    service.configure_home_service("stylist-1", HomeServiceConfig(enabled=True, fee=1500))

    assert service.check_coverage("stylist-1", *LYON) == CoverageResult(covered=True, additional_fee=1500)


def test_first_matching_zone_wins(db):
    service = CoverageService(db)
    service.add_zone(
        "stylist-1",
        CoverageZoneCreate(city="Lyon", radius_km=15, additional_fee=900,
                           center_latitude=LYON[0], center_longitude=LYON[1]),
    )
    service.add_zone(
        "stylist-1",
        CoverageZoneCreate(city="Paris", radius_km=25, additional_fee=500,
                           center_latitude=PARIS[0], center_longitude=PARIS[1]),
    )
    service.add_zone(
        "stylist-1",
        CoverageZoneCreate(city="Versailles", radius_km=5, additional_fee=300,
                           center_latitude=VERSAILLES[0], center_longitude=VERSAILLES[1]),
    )

    # Paris comes before Versailles in city order
    assert service.check_coverage("stylist-1", *VERSAILLES) == CoverageResult(True, 500)
    assert service.check_coverage("stylist-1", *LYON) == CoverageResult(True, 900)
    assert service.check_coverage("stylist-1", 43.2965, 5.3698) == CoverageResult(False, 0)  # Marseille


def test_zones_without_center_are_skipped(db):
    db.add(models.StylistDetails(user_id="stylist-1", offers_home_service=True, home_service_fee=700))
    db.commit()
    service = CoverageService(db)
    service.add_zone("stylist-1", CoverageZoneCreate(city="Paris", radius_km=50))

    assert service.check_coverage("stylist-1", *PARIS) == CoverageResult(False, 0)


def test_inactive_zone_is_ignored(db):
    service = CoverageService(db)
    zone = service.add_zone(
        "stylist-1",
        CoverageZoneCreate(city="Paris", radius_km=25, center_latitude=PARIS[0], center_longitude=PARIS[1]),
    )
    service.update_zone(zone.id, "stylist-1", CoverageZoneUpdate(is_active=False))

    assert service.get_zones("stylist-1") == []
    assert service.check_coverage("stylist-1", *PARIS).covered is False


def test_zone_belongs_to_its_stylist(db):
    service = CoverageService(db)
    zone = service.add_zone("stylist-1", CoverageZoneCreate(city="Paris"))

    with pytest.raises(NotFoundError):
        service.delete_zone(zone.id, "stylist-2")

    service.delete_zone(zone.id, "stylist-1")
    assert service.get_zones("stylist-1") == []


def test_zone_center_needs_both_coordinates():
    with pytest.raises(ValueError):
        CoverageZoneCreate(city="Paris", center_latitude=48.85)


def test_coverage_endpoints(client):
    response = client.post(
        "/coverage/zones",
        json={"city": "Paris", "radius_km": 25, "additional_fee": 500,
              "center_latitude": PARIS[0], "center_longitude": PARIS[1]},
    )
    assert response.status_code == 201
    stylist = response.json()["coiffeur_id"]

    response = client.get(f"/coverage/stylists/{stylist}/check", params={"lat": VERSAILLES[0], "lon": VERSAILLES[1]})
    assert response.json() == {"covered": True, "additional_fee": 500}

    response = client.get(f"/coverage/stylists/{stylist}/check", params={"lat": 120, "lon": 0})
    assert response.status_code == 422
