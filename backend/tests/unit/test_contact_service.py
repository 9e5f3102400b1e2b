"""
Tests for ContactService and the contact score.
"""

from datetime import datetime, timedelta

import pytest

from backend.src.models import Contact, ContactStatus, UserRole
from backend.src.models.contact import contact_score
from backend.src.schemas.contact import ContactCreate, ContactUpdate
from backend.src.services.contact_service import ContactService
from backend.src.services.exceptions import NotFoundError, PermissionDeniedError


@pytest.fixture
def contact_service(test_db_session):
    return ContactService(test_db_session)


@pytest.fixture
def owner(make_user):
    return make_user(role=UserRole.PLANNER)


def _create(service, owner, **fields):
    data = {"first_name": "Ana", "last_name": "Lima", "source": "Referral", **fields}
    return service.create(ContactCreate(**data), owner_id=owner.id)


class TestContactScore:

    def test_bare_contact_scores_its_lead_score(self):
        assert contact_score(Contact(first_name="A", last_name="B", lead_score=15)) == 15

    def test_completeness_points(self):
        contact = Contact(
            first_name="A", last_name="B", lead_score=0,
            email="a@example.com", mobile="555-0100", company="Acme",
            job_title="CEO", address={"city": "Portland"},
        )
        assert contact_score(contact) == 40

    @pytest.mark.parametrize("days_ago, points", [(2, 20), (10, 10), (45, 0)])
    def test_recent_contact_points(self, days_ago, points):
        now = datetime(2026, 6, 1, 12, 0)
        contact = Contact(
            first_name="A", last_name="B", lead_score=0,
            last_contact_date=now - timedelta(days=days_ago),
        )
        assert contact_score(contact, now=now) == points

    def test_capped_at_100(self):
        contact = Contact(
            first_name="A", last_name="B", lead_score=90,
            email="a@example.com", phone="555", company="Acme",
        )
        assert contact_score(contact) == 100


def test_create_defaults(contact_service, owner):
    contact = _create(contact_service, owner, email="  Ana@Example.COM ", address={"city": "Lisbon"})

    assert contact.guid.startswith("con_")
    assert contact.status == ContactStatus.PROSPECT
    assert contact.email == "ana@example.com"
    assert contact.owner_guid == owner.guid
    assert contact.address["city"] == "Lisbon"
    assert contact.communication_preferences["preferred_time"] == "9:00 AM - 5:00 PM"
    assert contact.score == 15


def test_unknown_assignee(contact_service, owner):
    with pytest.raises(NotFoundError):
        _create(contact_service, owner, assigned_to_guid="usr_missing")


def test_lead_score_out_of_range_rejected():
    with pytest.raises(ValueError):
        ContactCreate(first_name="A", last_name="B", source="Web", lead_score=101)


class TestList:

    def test_orders_by_name_and_searches(self, contact_service, owner):
        _create(contact_service, owner, first_name="Zoe", last_name="Adams", company="Harbor Bank")
        _create(contact_service, owner, first_name="Ben", last_name="Young")
        _create(contact_service, owner, first_name="Amy", last_name="Adams")

        contacts, total = contact_service.list()
        assert total == 3
        assert [c.full_name for c in contacts] == ["Amy Adams", "Zoe Adams", "Ben Young"]

        contacts, total = contact_service.list(search="harbor")
        assert [c.first_name for c in contacts] == ["Zoe"]

    def test_status_tag_and_owner_filters(self, contact_service, owner, make_user):
        other = make_user(role=UserRole.PLANNER)
        _create(contact_service, owner, status=ContactStatus.CUSTOMER, tags=["VIP"])
        _create(contact_service, other, first_name="Bo")

        assert contact_service.list(status=ContactStatus.CUSTOMER)[1] == 1
        assert contact_service.list(tag="vip")[1] == 1
        contacts, _ = contact_service.list(owner_guid=other.guid)
        assert [c.first_name for c in contacts] == ["Bo"]

    def test_unknown_owner(self, contact_service):
        with pytest.raises(NotFoundError):
            contact_service.list(owner_guid="usr_missing")


class TestUpdateDelete:

    def test_update_replaces_fields_and_keeps_required(self, contact_service, owner, make_user):
        assignee = make_user(role=UserRole.PLANNER)
        contact = _create(contact_service, owner)

        updated = contact_service.update(contact.guid, ContactUpdate(
            status=ContactStatus.ACTIVE,
            assigned_to_guid=assignee.guid,
            first_name=None,
            social_profiles={"linkedin": "https://linkedin.example/ana"},
        ))

        assert updated.status == ContactStatus.ACTIVE
        assert updated.assigned_to_guid == assignee.guid
        assert updated.first_name == "Ana"
        assert updated.social_profiles["linkedin"].endswith("/ana")

    def test_only_owner_or_admin_deletes(self, contact_service, owner, make_user):
        contact = _create(contact_service, owner)
        stranger = make_user(role=UserRole.PLANNER)

        with pytest.raises(PermissionDeniedError):
            contact_service.delete(contact.guid, actor_id=stranger.id)

        contact_service.delete(contact.guid, actor_id=stranger.id, is_admin=True)
        with pytest.raises(NotFoundError):
            contact_service.get_by_guid(contact.guid)

    def test_other_record_guid_is_not_found(self, contact_service):
        with pytest.raises(NotFoundError):
            contact_service.get_by_guid("led_01hgw2bbg0000000000000001")
